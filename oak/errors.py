#  -*- coding: utf-8 -*-
"""
Exception taxonomy of the Oak framework.

Every error raised by Oak derives from :class:`OakError` and, where one fits,
from the closest builtin exception as well, so callers may catch either
``oak.errors.NotRegistered`` or a plain ``KeyError``.

Families
--------
configuration
    A required parameter is absent: :class:`ParamsMissing`,
    :class:`MissingComponentName`, :class:`MissingOwnedClassname`,
    :class:`MissingFile`.
storage
    Reading or writing a backend failed: :class:`ErrorReadingXML`,
    :class:`ErrorWritingXML`, :class:`ConnectionFailure`,
    :class:`SQLExecuteError`, :class:`UnknownFiler`.
integrity
    An operation would break the ownership tree: :class:`AlreadyRegistered`,
    :class:`NotRegistered`, :class:`AlreadyOwned`, :class:`CircularOwnership`,
    :class:`DuplicatedTopLevel`.
loading
    A class or handler reference cannot be resolved: :class:`ClassNotFound`,
    :class:`MissingOwnedFile`, :class:`ErrorCreatingOwned`,
    :class:`UnknownHandler`.

None of these errors is retried internally.
"""

from __future__ import annotations


class OakError(Exception):
    """Base class of every Oak error."""

    message: str = 'Oak error'

    def __init__(self, detail: object = None) -> None:
        self.detail = detail
        text = self.message if detail is None else f'{self.message}: {detail}'
        super().__init__(text)

    def __str__(self) -> str:
        # KeyError subclasses would otherwise repr() the message
        return self.args[0] if self.args else self.message


class ParamsMissing(OakError, ValueError):
    message = 'Missing parameters'


# ========== ========== ========== ========== ========== filer
class FilerError(OakError):
    message = 'Filer error'


class UnknownFiler(FilerError, KeyError):
    message = 'No filer available for id'


class MissingFile(FilerError, FileNotFoundError):
    message = 'Missing XML file'


class ErrorReadingXML(FilerError):
    message = 'There was something wrong when trying to read the XML file'


class ErrorWritingXML(FilerError):
    message = 'There was something wrong when trying to write the XML file'


class ConnectionFailure(FilerError):
    message = 'Connection failure'


class SQLExecuteError(FilerError):
    message = 'Error executing SQL'


# ========== ========== ========== ========== ========== component
class ComponentError(OakError):
    message = 'Component error'


class MissingComponentName(ComponentError, ValueError):
    message = 'The name property is mandatory'


class MissingOwnedClassname(ComponentError, ValueError):
    message = 'Missing __classname__ property while trying to create owned component'


class MissingOwnedFile(ComponentError, ImportError):
    message = 'Could not load the class of owned component'


class ErrorCreatingOwned(ComponentError):
    message = 'Error creating owned component'


class AlreadyRegistered(ComponentError, ValueError):
    message = 'This name has already been registered'


class NotRegistered(ComponentError, KeyError):
    message = 'This component is not registered'


class AlreadyOwned(ComponentError, ValueError):
    message = 'This component already has an owner'


class CircularOwnership(ComponentError, ValueError):
    message = 'A component cannot own itself or one of its ancestors'


class UnknownHandler(ComponentError, LookupError):
    message = 'Could not resolve event handler'


# ========== ========== ========== ========== ========== application
class ClassNotFound(OakError, ImportError):
    message = 'Class not found'


class DuplicatedTopLevel(OakError, ValueError):
    message = 'Two top levels with the same name'


__all__ = [
    'OakError',
    'ParamsMissing',
    'FilerError',
    'UnknownFiler',
    'MissingFile',
    'ErrorReadingXML',
    'ErrorWritingXML',
    'ConnectionFailure',
    'SQLExecuteError',
    'ComponentError',
    'MissingComponentName',
    'MissingOwnedClassname',
    'MissingOwnedFile',
    'ErrorCreatingOwned',
    'AlreadyRegistered',
    'NotRegistered',
    'AlreadyOwned',
    'CircularOwnership',
    'UnknownHandler',
    'ClassNotFound',
    'DuplicatedTopLevel',
]
