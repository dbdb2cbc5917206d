"""Decide which call graph nodes are user-written functions."""

from __future__ import annotations

from edgewalk.core.models import MethodDescriptor, MethodKind
from edgewalk.core.naming import DEFAULT_NAMING, NamingScheme


def is_bootstrap_type(type_name: str, naming: NamingScheme = DEFAULT_NAMING) -> bool:
    """Check if a declaring type belongs to engine-injected runtime code."""
    return type_name.startswith(naming.bootstrap_prefixes())


def is_real_function(method: MethodDescriptor, naming: NamingScheme = DEFAULT_NAMING) -> bool:
    """Check if a method is an ordinary function written by the user.

    Synthetic and constructor-dispatch methods, DOM modelling helpers and
    anything declared in a bootstrap file are not.
    """
    if method.kind is not MethodKind.ORDINARY:
        return False

    type_name = method.declaring_type.name
    if naming.synthetic_marker in type_name:
        return False
    if is_bootstrap_type(type_name, naming):
        return False

    return method.name == naming.function_selector
