## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class PcliError(Exception):
    def __init__(self, message: str = "", *, pcl_node=None, pcl_token=None, pcl_line=None):
        """Base class for all pcli-raised errors."""
        super().__init__(message)
        self.pcl_node: object = pcl_node
        self.pcl_token: str = pcl_token
        self.pcl_line: int = pcl_line

class PcliParseError(PcliError):
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message, pcl_token=token, pcl_line=line)
        self.filename = filename
        self.line = line
        self.column = column
        self.token = token

class PcliIncompleteParse(PcliParseError, lark.exceptions.ParseError):
    """Input ended before the construct being parsed was complete."""
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message, filename=filename, line=line, column=column, token=token)


class PcliNameError(PcliError, NameError):
    pass

class PcliValueError(PcliError, ValueError):
    pass

class PcliRuntimeError(PcliError, RuntimeError):
    pass


class PcliTypeError(PcliError, TypeError):
    """Operands, conditions or callees of the wrong type at evaluation time."""
    pass

class PcliArityError(PcliTypeError):
    def __init__(self, message: str = "", *, expected=None, received=None, **kwargs):
        super().__init__(message, **kwargs)
        self.expected = expected
        self.received = received
