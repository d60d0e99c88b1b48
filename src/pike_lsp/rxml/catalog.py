"""
Default RXML lookup tables.

Static reference data: tag names the detector treats as known RXML, which of
them are containers, deprecated tags with their replacement hint, and the
entity scopes recognised in ``&scope.variable;`` references.
"""

CONTAINER_TAGS = frozenset({
    "apply", "append", "cache", "case", "catch", "comment", "cond", "define",
    "elif", "else", "elseif", "emit", "eval", "for", "foreach", "if",
    "nocache", "noparse", "nooutput", "output", "pre", "recursive-output",
    "roxen", "scope", "set", "sqlquery", "then", "trace", "trimlines",
    "vform", "wizard",
})

EMPTY_TAGS = frozenset({
    "contents", "date", "debug", "expire-time", "fsize", "header",
    "insert", "modified", "random", "redirect", "return", "sqltable",
    "throw", "undefine", "unset", "use", "user",
})

KNOWN_TAGS = CONTAINER_TAGS | EMPTY_TAGS

# Deprecated tag -> suggested replacement
DEPRECATED_TAGS = {
    "elif": "use <elseif> instead",
    "output": "use <emit> instead",
    "sqltable": "use <emit source=\"sql\"> instead",
    "recursive-output": "use nested <emit> instead",
}

KNOWN_SCOPES = frozenset({
    "_", "client", "cookie", "form", "page", "roxen", "var", "visitor",
})
