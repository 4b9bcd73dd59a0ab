from typing import Dict, Optional, Tuple

from prettynode.models import Parameter, SignatureInfo, SignatureKind
from prettynode.logger import logger

# Hand-written signatures for very common symbols whose real definitions are
# hard to reach by following imports.
KNOWN_SIGNATURES: Dict[Tuple[str, str], SignatureInfo] = {
    ("express", "Router"): SignatureInfo(
        name="Router",
        kind=SignatureKind.CONSTRUCTOR,
        return_type="Router",
        doc_comment="Express router constructor",
    ),
    ("express", "Express"): SignatureInfo(
        name="Express",
        kind=SignatureKind.FUNCTION,
        return_type="Application",
        doc_comment="Express application factory",
    ),
    ("react", "useState"): SignatureInfo(
        name="useState",
        kind=SignatureKind.FUNCTION,
        parameters=[Parameter(name="initialState", param_type="T")],
        return_type="[T, Dispatch<SetStateAction<T>>]",
        doc_comment="React state hook",
    ),
    ("react", "useEffect"): SignatureInfo(
        name="useEffect",
        kind=SignatureKind.FUNCTION,
        parameters=[
            Parameter(name="effect", param_type="EffectCallback"),
            Parameter(name="deps", param_type="DependencyList", is_optional=True),
        ],
        return_type="void",
        doc_comment="React effect hook",
    ),
}


def _lodash_signature(symbol_name: str) -> SignatureInfo:
    return SignatureInfo(
        name=symbol_name,
        kind=SignatureKind.FUNCTION,
        parameters=[Parameter(name="args", param_type="any[]", is_rest=True)],
        return_type="any",
        doc_comment=f"Lodash {symbol_name} function",
    )


def known_signature(module_path: str, symbol_name: str) -> Optional[SignatureInfo]:
    """
    Look up a fallback signature for ``module_path:symbol_name``. Every module
    path starting with ``lodash`` (``lodash``, ``lodash/fp``, ``lodash.debounce``)
    matches any symbol.
    """
    entry = KNOWN_SIGNATURES.get((module_path, symbol_name))
    if entry is not None:
        logger.debug("Using known signature", module=module_path, symbol=symbol_name)
        return entry.model_copy(deep=True)
    if module_path.startswith("lodash"):
        logger.debug("Using lodash signature", module=module_path, symbol=symbol_name)
        return _lodash_signature(symbol_name)
    return None
