#  -*- coding: utf-8 -*-
"""
Rich terminal display formatting for Oak objects.

Objects define their visual representation through a panel title and a panel
body; this module turns them into Rich panels, forms and tables styled by a
:class:`DisplaySettings` theme.
"""

from __future__ import annotations

import pandas

from abc import ABC, abstractmethod

from io import StringIO
from pathlib import Path

from rich.markup import escape
from rich.text import Text
from rich.panel import Panel
from rich.console import Console, RenderableType
from rich.table import Table
from rich import box
from rich.align import Align

from oak.hdf5 import HDF5Filer
from oak.object import OakObject
from oak.properties import OakProperty

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


# ========== ========== ========== ========== ========== ==========
class DisplaySettings(OakObject):
    """
    Configuration for terminal display formatting.

    Settings can be customized per instance and saved as reusable themes in
    HDF5 files (extension ``.disp``).

    All styling properties use Rich's style syntax, supporting colors,
    attributes (bold, italic), and combinations.

    Attributes
    ----------
    console_width : int
        Maximum console output width in characters. Default 150.
    property_style : str
        Style for property labels in forms. Default 'bold bright_yellow'.
    panel_border_style : str
        Style for panel borders. Default 'bright_cyan'.
    panel_box : str
        Box style name from rich.box. Default 'ROUNDED'.
    panel_title_align : str
        Panel title alignment. Default 'center'.
    table_index_style : str or None
        Style for table index column. Default None.
    table_header_style : str or None
        Style for table headers. Default 'bold bright_yellow'.
    table_round_floats : int or None
        Decimal places for float rounding. Default None.
    table_spacing : int
        Column spacing in characters. Default 4.

    Examples
    --------
    Create and customize settings::

        settings = DisplaySettings(console_width=120)
        settings.panel_border_style = 'green'

    Save and reuse as a theme::

        settings.save('my_theme.disp')
        component.display_settings = DisplaySettings.load('my_theme.disp')
    """

    extension = '.disp'

    # ---------- ---------- ---------- ---------- console
    console_width: int = OakProperty(default=150, doc="""
        Maximum width for console output in characters.
        """)

    @console_width.parser
    def console_width(self, value: Any) -> int:
        value = int(value)

        if value <= 0:
            raise ValueError(f'console_width must be positive, got {value}')

        return value

    # ---------- ---------- ---------- ---------- property
    property_style: str = OakProperty(default='bold bright_yellow', doc="""
        Rich style string for property labels in forms.
        """)

    # ---------- ---------- ---------- ---------- panel
    panel_border_style: str = OakProperty(default='bright_cyan', doc="""
        Rich color/style for panel borders.
        """)

    panel_box: str = OakProperty(default='ROUNDED', doc="""
        Box style name for panel borders, an attribute name of ``rich.box``
        such as 'ROUNDED', 'SQUARE', 'DOUBLE', 'HEAVY', 'MINIMAL' or 'ASCII'.
        """)

    @panel_box.parser
    def panel_box(self, value: Any) -> str:
        value = str(value).upper()

        if not isinstance(getattr(box, value, None), box.Box):
            raise ValueError(f'Unknown box style: {value}')

        return value

    panel_title_align: str = OakProperty(default='center', doc="""
        Panel title alignment within the top border: 'left', 'center' or
        'right'.
        """)

    @panel_title_align.parser
    def panel_title_align(self, value: Any) -> str:
        if value not in ('left', 'center', 'right'):
            raise ValueError(f'Invalid title alignment: {value}')

        return value

    # ---------- ---------- ---------- ---------- table
    table_index_style: str | None = OakProperty(doc="""
        Rich style for the index column of tables. None for no styling.
        """)

    table_header_style: str | None = OakProperty(default='bold bright_yellow', doc="""
        Rich style for table column headers.
        """)

    table_round_floats: int | None = OakProperty(doc="""
        Number of decimal places for float columns. None shows full precision.
        """)

    table_spacing: int = OakProperty(default=4, doc="""
        Horizontal spacing between table columns in characters.
        """)

    # ========== ========== ========== ========== ========== public methods
    def save(self, path: str | Path) -> Path:
        """
        Save the settings as a theme file.

        The ``.disp`` extension is appended when missing.

        Returns
        -------
        Path
            The file written.
        """
        path = Path(path)

        if path.suffix != self.extension:
            path = path.with_suffix(path.suffix + self.extension)

        values = {name: getattr(self, name) for name in type(self).oak_properties}

        HDF5Filer(path, group='display').store(values)

        return path

    @classmethod
    def load(cls, path: str | Path) -> DisplaySettings:
        """Build settings from a theme file written by :meth:`save`."""
        values = HDF5Filer(path, group='display').load(*cls.oak_properties)

        settings = cls()

        for name, value in values.items():
            setattr(settings, name, value)

        return settings


class Displayable(ABC):
    """
    Abstract base for objects with Rich terminal display.

    Subclasses define content through :meth:`_title` and :meth:`_content`,
    while this class handles formatting, styling, and rendering.

    Integrates with Rich's protocol (``__rich__``) and provides string output
    (``__str__``), making objects displayable in both Rich-aware and standard
    contexts.

    Examples
    --------
    ::

        class Report(Displayable):
            def __init__(self, frame):
                self.frame = frame

            def _title(self):
                return Text("Data Report")

            def _content(self):
                return self.format_as_table(self.frame)
    """

    # ========== ========== ========== ========== ========== special methods
    def __str__(self) -> str:
        """
        String representation with Rich formatting.

        Output includes ANSI codes (``force_terminal=True``); the width is
        controlled by ``display_settings.console_width``.
        """
        string_io = StringIO()
        console = Console(file=string_io,
                          force_terminal=True,
                          width=self.display_settings.console_width)

        console.print(self._display_panel())

        return string_io.getvalue()

    def __rich__(self) -> RenderableType:
        return self._display_panel()

    # ========== ========== ========== ========== ========== protected methods
    @abstractmethod
    def _title(self) -> Text:
        """Generate panel title."""
        ...

    @abstractmethod
    def _content(self) -> RenderableType:
        """Generate panel body content."""
        ...

    def _display_panel(self) -> Panel:
        return Panel(
            self._content(),
            title=self._title(),
            border_style=self.display_settings.panel_border_style,
            title_align=self.display_settings.panel_title_align,
            expand=False,
            box=getattr(box, self.display_settings.panel_box)
        )

    # ========== ========== ========== ========== ========== public methods
    def format_as_form(self, data: dict[str, Any] | pandas.Series) -> Table:
        """
        Format data as key-value form.

        Creates a two-column table with keys (left, styled with
        ``property_style``) and values (right).
        """
        form = Table.grid(padding=(0, 4), expand=False)
        form.add_column(justify='left', style=self.display_settings.property_style)
        form.add_column(justify='left', style=None)

        for prop, value in data.items():
            form.add_row(f'{prop}:', escape(str(value)))

        return form

    def format_as_table(self,
                        frame: pandas.DataFrame,
                        show_index: bool = True,
                        align_header: str = 'center',
                        align_column: str | dict[str, str] | None = None,
                        max_rows: int = 31,
                        **kwargs) -> Table:
        """
        Format DataFrame as Rich table.

        Parameters
        ----------
        frame : pandas.DataFrame
            Data to display.
        show_index : bool, optional
            Include index column. Default True.
        align_header : str, optional
            Header alignment. Default 'center'.
        align_column : str, dict[str, str], or None, optional
            Column alignment. None means numeric columns to the right and
            everything else to the left. Default None.
        max_rows : int, optional
            Max rows before truncation. Default 31.
        **kwargs
            ``header_style``, ``index_style`` and ``round_floats`` override
            the corresponding settings.

        Raises
        ------
        TypeError
            If alignment or rounding parameters have invalid types.

        Notes
        -----
        Truncation shows the first n/2 rows, '...', and the last n/2 rows when
        the frame has more than ``max_rows`` rows.
        """
        header_style: str | None = kwargs.pop('header_style', self.display_settings.table_header_style)
        index_style: str | None = kwargs.pop('index_style', self.display_settings.table_index_style)

        _frame = frame.reset_index() if show_index else frame.copy()

        columns = [str(column) for column in _frame.columns]
        _frame.columns = columns

        table = Table.grid(padding=(0, self.display_settings.table_spacing), expand=False)

        # ---------- ---------- resolve column alignments
        if isinstance(align_column, str):

            for _ in columns:
                table.add_column(justify=align_column)

        elif isinstance(align_column, dict):

            for column in columns:
                table.add_column(justify=align_column.get(column, 'left'))

        elif align_column is None:

            for column in columns:

                if pandas.api.types.is_numeric_dtype(_frame[column]) and \
                        not pandas.api.types.is_bool_dtype(_frame[column]):
                    table.add_column(justify='right')

                else:
                    table.add_column(justify='left')

        else:
            raise TypeError(f'Invalid type for align_column argument: {type(align_column)}')

        if not isinstance(align_header, str):
            raise TypeError(f'Invalid type for align_header argument: {type(align_header)}')

        table.add_row(*(Align(escape(col), align_header) for col in columns), style=header_style)

        # ---------- ---------- ---------- ---------- rounding floats
        round_floats: int | None = kwargs.pop('round_floats', self.display_settings.table_round_floats)

        if round_floats is not None:

            if not isinstance(round_floats, int):
                raise TypeError(f'Invalid type for round_floats argument: {type(round_floats)}')

            for col in _frame.select_dtypes(include='float').columns:
                _frame[col] = _frame[col].apply(lambda val: f'{val:.{round_floats}f}')

        # ---------- ---------- ---------- ---------- populate table
        __frame = _frame.astype(str)

        def add_rows(rows: pandas.DataFrame) -> None:
            for _, row in rows.iterrows():

                if show_index:
                    table.add_row(Text(row.values[0], style=index_style or ''), *row.values[1:])
                else:
                    table.add_row(*row.values)

        if len(__frame) <= max_rows:
            add_rows(__frame)

        else:
            n_rows: int = (max_rows - 1) // 2

            add_rows(__frame.head(n_rows))
            table.add_row(*(Align.center('...') for _ in columns))
            add_rows(__frame.tail(n_rows))

        return table

    def to_html(self) -> str:
        """Export display as HTML with inline styles."""
        console = Console(record=True, width=self.display_settings.console_width)
        console.print(self)
        return console.export_html()

    # ---------- ---------- ---------- ---------- ---------- properties
    @property
    def display_settings(self) -> DisplaySettings:
        """
        DisplaySettings
            Formatting configuration of this object. Each instance gets its
            own settings on first access; assign the same instance to several
            objects to share a theme.
        """
        settings = self.__dict__.get('_display_settings')

        if settings is None:
            settings = self.__dict__['_display_settings'] = DisplaySettings()

        return settings

    @display_settings.setter
    def display_settings(self, settings: DisplaySettings) -> None:
        if not isinstance(settings, DisplaySettings):
            raise TypeError(f'Expected DisplaySettings, given {type(settings).__name__}')

        self.__dict__['_display_settings'] = settings


__all__ = [
    'DisplaySettings',
    'Displayable',
]
