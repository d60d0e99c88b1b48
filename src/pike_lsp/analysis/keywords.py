"""
Pike keyword tables used for token classification.
"""

TYPE_KEYWORDS = frozenset({
    "array", "auto", "bool", "float", "function", "int", "mapping", "mixed",
    "multiset", "object", "program", "string", "void", "zero",
})

MODIFIER_KEYWORDS = frozenset({
    "const", "constant", "deprecated", "extern", "final", "inline", "local",
    "nomask", "optional", "private", "protected", "public", "static", "variant",
})

CONTROL_KEYWORDS = frozenset({
    "break", "case", "catch", "continue", "default", "do", "else", "for",
    "foreach", "gauge", "if", "return", "sscanf", "switch", "while",
})

OTHER_KEYWORDS = frozenset({
    "class", "enum", "global", "import", "inherit", "interface", "lambda",
    "predef", "typedef", "typeof",
})

PIKE_KEYWORDS = TYPE_KEYWORDS | MODIFIER_KEYWORDS | CONTROL_KEYWORDS | OTHER_KEYWORDS

# Keywords that may directly precede a declared name
DECLARATION_KEYWORDS = TYPE_KEYWORDS | frozenset({"class", "constant", "enum", "typedef"})
