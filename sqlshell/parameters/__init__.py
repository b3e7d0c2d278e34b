"""Parameter formatting and binding for shell statements."""

from sqlshell.parameters._binder import ParameterBinder, bind_parameters, is_named_parameters
from sqlshell.parameters._formatter import format_parameter
from sqlshell.parameters._types import NAMED_PARAMETER_STYLES, ParameterStyle

__all__ = (
    "NAMED_PARAMETER_STYLES",
    "ParameterBinder",
    "ParameterStyle",
    "bind_parameters",
    "format_parameter",
    "is_named_parameters",
)
