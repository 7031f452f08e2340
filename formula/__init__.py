from .ast_canon import (
    And,
    Expr,
    FormulaSyntaxError,
    Iff,
    Imp,
    Not,
    Or,
    ParseCache,
    Var,
    canonical_key,
    canonicalize,
    equals_canonical,
    parse_formula,
)
from .quantifiers import alpha_equal, is_instance_of, parse_quantified
