"""Map raw call targets onto the method that should be reported."""

from __future__ import annotations

from edgewalk.core.models import MethodDescriptor
from edgewalk.core.naming import DEFAULT_NAMING, NamingScheme


def resolve_call_target(
    method: MethodDescriptor, naming: NamingScheme = DEFAULT_NAMING
) -> MethodDescriptor:
    """Collapse a constructor-dispatch method onto its function body.

    `new F()` targets a dispatch shim declared next to F's body; callers care
    about the body. Methods without a sibling body are returned unchanged.
    """
    if method.name == naming.constructor_name:
        body = method.declaring_type.get_method(naming.function_selector)
        if body is not None:
            return body
    return method
