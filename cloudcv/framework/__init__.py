"""
Async native-task framework: marshaling, argument binding, tasks and dispatch.
"""

from cloudcv.framework.binding import (
    Argument,
    ArgumentBinder,
    BindingSpec,
    BoundArguments,
    Predicate,
    bind_arguments,
    is_array,
    is_buffer,
    is_function,
    is_number,
    is_number_pair,
    is_object,
    is_string,
    string_enum,
)
from cloudcv.framework.dispatcher import Dispatcher, get_dispatcher, shutdown_dispatcher
from cloudcv.framework.exceptions import (
    BindingError,
    CloudCVError,
    DomainError,
    InternalError,
    MarshalError,
    TaskError,
    TaskStateError,
)
from cloudcv.framework.task import Task, TaskState

__all__ = [
    "Argument",
    "ArgumentBinder",
    "BindingSpec",
    "BoundArguments",
    "Predicate",
    "bind_arguments",
    "is_array",
    "is_buffer",
    "is_function",
    "is_number",
    "is_number_pair",
    "is_object",
    "is_string",
    "string_enum",
    "Dispatcher",
    "get_dispatcher",
    "shutdown_dispatcher",
    "BindingError",
    "CloudCVError",
    "DomainError",
    "InternalError",
    "MarshalError",
    "TaskError",
    "TaskStateError",
    "Task",
    "TaskState",
]
