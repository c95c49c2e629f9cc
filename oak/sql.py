#  -*- coding: utf-8 -*-
"""
Relational-row persistence.

:class:`SQLRowFiler` stores the properties of an object in the columns of one
table row, the row being selected by an equality predicate fixed when the
filer is created. :class:`SQLConnection` is the connection collaborator it
relies on: it runs SQL statements and quotes values using the database
dialect, on top of SQLAlchemy.

Examples
--------
>>> connection = SQLConnection('sqlite:///app.db')
>>> filer = SQLRowFiler(connection, table='users', where={'id': 5})
>>> filer.load('email')
{'email': 'someone@example.com'}
>>> filer.store(email='other@example.com')
True
"""

from __future__ import annotations

import logging
import re

import sqlalchemy

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from oak.errors import ParamsMissing, ConnectionFailure, SQLExecuteError
from oak.filer import Filer

# ---------- ---------- ---------- ---------- ---------- ---------- typing
from typing import Any


log = logging.getLogger(__name__)


_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$')


def check_identifier(name: str) -> str:
    """
    Validate a table or column name.

    Identifiers are interpolated into statements unquoted, so they must be
    plain SQL identifiers (optionally ``schema.name``).

    Raises
    ------
    ValueError
        If ``name`` is not a plain identifier.
    """
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f'Invalid SQL identifier: {name!r}')

    return name


class SQLConnection:
    """
    Database connection shared by relational filers.

    The engine is created on first use, so building a connection object never
    touches the database.

    Parameters
    ----------
    url : str
        SQLAlchemy database URL, e.g. ``"sqlite:///app.db"`` or
        ``"postgresql://user@host/db"``.
    **options
        Extra keyword arguments for :func:`sqlalchemy.create_engine`.

    Notes
    -----
    Every :meth:`execute` call runs in its own transaction. Grouping several
    statements in one transaction is left to the caller.
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self, url: str, **options: Any) -> None:
        if not url:
            raise ParamsMissing('url')

        self.url: str = url
        self._options: dict[str, Any] = options
        self._engine: Engine | None = None

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.url!r})'

    # ========== ========== ========== ========== ========== public methods
    def connect(self) -> Engine:
        """
        Return the engine, creating it if needed.

        Raises
        ------
        ConnectionFailure
            If the engine cannot be created.
        """
        if self._engine is None:

            try:
                self._engine = sqlalchemy.create_engine(self.url, **self._options)

            except (SQLAlchemyError, ImportError, ValueError) as error:
                raise ConnectionFailure(self.url) from error

            log.debug('created engine for %s', self._engine.url)

        return self._engine

    def quote(self, value: Any) -> str:
        """
        Quote a value as an SQL string literal of the connection's dialect.

        ``None`` and the empty string quote to ``''``. Every other value is
        converted to ``str`` first: values are opaque scalars at this layer.
        """
        if value is None or value == '':
            return "''"

        processor = sqlalchemy.String().literal_processor(dialect=self.connect().dialect)

        return processor(str(value))

    def execute(self, sql: str) -> list[dict[str, Any]]:
        """
        Run one statement in its own transaction.

        Returns
        -------
        list of dict
            The rows produced by the statement as column -> value mappings,
            or an empty list for statements that return no rows.

        Raises
        ------
        SQLExecuteError
            If the statement fails.
        """
        engine = self.connect()

        log.debug('executing %s', sql)

        try:
            with engine.begin() as connection:
                result = connection.exec_driver_sql(sql)

                if not result.returns_rows:
                    return []

                return [dict(row) for row in result.mappings()]

        except SQLAlchemyError as error:
            raise SQLExecuteError(sql) from error

    def disconnect(self) -> None:
        """Dispose the engine and its pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


class SQLRowFiler(Filer):
    """
    Filer reading and writing the columns of one table row.

    Parameters
    ----------
    connection : SQLConnection
        Connection used to run statements and quote values. Mandatory.
    table : str, optional
        Table name. Without a table, ``load`` returns ``{}`` and ``store``
        returns False.
    where : dict, optional
        ``column -> value`` equality predicate selecting the row, combined
        with ``AND``. Without it, ``load``/``store`` are disabled like with a
        missing table.

    Raises
    ------
    ParamsMissing
        If ``connection`` is None.
    ValueError
        If the table or a key column is not a plain SQL identifier.
    """

    # ========== ========== ========== ========== ========== special methods
    def __init__(self,
                 connection: SQLConnection,
                 table: str | None = None,
                 where: dict[str, Any] | None = None) -> None:

        if connection is None:
            raise ParamsMissing('connection')

        self.connection: SQLConnection = connection
        self.table: str | None = check_identifier(table) if table else None
        self.where: dict[str, Any] = dict(where or {})

        for column in self.where:
            check_identifier(column)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(table={self.table!r}, where={self.where!r})'

    # ========== ========== ========== ========== ========== protected methods
    def _where_statement(self) -> str:
        return ' AND '.join(f'{column}={self.connection.quote(self.where[column])}'
                            for column in sorted(self.where))

    # ========== ========== ========== ========== ========== public methods
    def load(self, *fields: str) -> dict[str, Any]:
        """
        Select ``fields`` from the row.

        Returns
        -------
        dict
            ``field -> value`` of the first matching row, or ``{}`` when the
            filer has no table or predicate, when no field is asked, or when no
            row matches.
        """
        if not self.table or not self.where or not fields:
            return {}

        columns = ','.join(check_identifier(field) for field in fields)
        sql = f'SELECT {columns} FROM {self.table} WHERE {self._where_statement()}'

        rows = self.connection.execute(sql)

        if not rows:
            return {}

        return rows[0]

    def store(self, values: dict[str, Any] | None = None, /, **kwargs: Any) -> bool:
        """
        Update the row with the given ``field -> value`` pairs.

        Every value is quoted through the connection.

        Returns
        -------
        bool
            False without touching the database when the filer has no table
            or predicate, True otherwise.
        """
        data = self._merge(values, kwargs)

        if not self.table or not self.where:
            return False

        if not data:
            return True

        assignments = ','.join(f'{check_identifier(field)}={self.connection.quote(data[field])}'
                               for field in sorted(data))

        sql = f'UPDATE {self.table} SET {assignments} WHERE {self._where_statement()}'

        self.connection.execute(sql)

        return True


__all__ = [
    'SQLConnection',
    'SQLRowFiler',
    'check_identifier',
]
