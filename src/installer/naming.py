"""Class-name and file-name derivation for generated plugin files."""

import re

_PHP_CLASS_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Reserved words PHP refuses as class names (case-insensitive).
_PHP_RESERVED_CLASS_NAMES = frozenset(
    {
        "abstract", "and", "array", "as", "bool", "break", "callable", "case", "catch",
        "class", "clone", "const", "continue", "declare", "default", "do", "echo", "else",
        "elseif", "empty", "enddeclare", "endfor", "endforeach", "endif", "endswitch",
        "endwhile", "enum", "eval", "exit", "extends", "false", "final", "finally", "float",
        "fn", "for", "foreach", "function", "global", "goto", "if", "implements", "include",
        "instanceof", "insteadof", "int", "interface", "isset", "iterable", "list", "match",
        "mixed", "namespace", "never", "new", "null", "object", "or", "parent", "print",
        "private", "protected", "public", "readonly", "require", "return", "self", "static",
        "string", "switch", "throw", "trait", "true", "try", "unset", "use", "var", "void",
        "while", "xor", "yield",
    }
)


def is_valid_class_name(name: str) -> bool:
    """Return True when ``name`` can be used as a PHP class name."""
    if not name or not _PHP_CLASS_NAME_RE.match(name):
        return False
    return name.lower() not in _PHP_RESERVED_CLASS_NAMES


def class_name_to_slug(class_name: str) -> str:
    """Derive the file-safe slug used for generated file names.

    Every uppercase letter after the first character is preceded by a
    hyphen and lowercased; underscores are dropped:
    ``DemoInstaller`` -> ``demo-installer``, ``MyPlugin_Installer`` ->
    ``my-plugin-installer``.
    """
    if not class_name:
        return class_name
    chars = []
    for idx, ch in enumerate(class_name):
        if ch.isupper():
            if idx > 0:
                chars.append("-")
            chars.append(ch.lower())
        else:
            chars.append(ch)
    return "".join(chars).replace("_", "")


def plugin_slug(class_name: str) -> str:
    """Slug with doubled and edge hyphens cleaned up, for plugin identifiers."""
    return class_name_to_slug(class_name).replace("--", "-").strip("-")


def installer_class_file_name(class_name: str) -> str:
    return f"class-{class_name_to_slug(class_name)}.php"


def installer_stub_file_name(class_name: str) -> str:
    return f"{class_name_to_slug(class_name)}-installer.php"


def main_plugin_file_name(class_name: str) -> str:
    return f"{class_name_to_slug(class_name)}.php"
