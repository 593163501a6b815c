# Overview: Lookups over the static permission catalog.

from .definitions import PERMISSION_DEFINITIONS


def split_code(code: str) -> tuple[str, str]:
    """"productos.crear" -> ("productos", "crear")."""
    module, _, action = code.partition(".")
    return module, action


def get_permission_definition(code):
    """Catalog entry for a code as Permission column values, or None."""
    for perm_code, name, description, module in PERMISSION_DEFINITIONS:
        if perm_code == code:
            return {
                "code": perm_code,
                "name": name,
                "description": description,
                "module": module,
                "action": split_code(perm_code)[1],
            }
    return None


def validate_permission_code(code):
    return get_permission_definition(code) is not None
