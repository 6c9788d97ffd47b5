from __future__ import annotations

import logging

from docmeta.models.extraction import FailureKind, ParseFault, ParseFaultKind

logger = logging.getLogger(__name__)

_KIND_BY_FAULT = {
    ParseFaultKind.CONTENT_HANDLER: FailureKind.SERIALIZATION_FAULT,
    ParseFaultKind.ILLEGAL_STATE: FailureKind.MALFORMED_OR_PROTECTED,
    ParseFaultKind.ENCRYPTED: FailureKind.MALFORMED_OR_PROTECTED,
    ParseFaultKind.LEGACY_FORMAT: FailureKind.MALFORMED_OR_PROTECTED,
    ParseFaultKind.UNSUPPORTED_TYPE: FailureKind.UNSUPPORTED_TYPE,
    ParseFaultKind.OTHER: FailureKind.INTERNAL_FAULT,
}


def classify_fault(fault: ParseFault, source_id: str) -> FailureKind:
    kind = _KIND_BY_FAULT.get(fault.kind, FailureKind.INTERNAL_FAULT)
    if kind is FailureKind.INTERNAL_FAULT:
        logger.warning("Text extraction failed for %s: %s", source_id, fault, exc_info=fault)
    else:
        logger.info("Extraction rejected for %s (%s): %s", source_id, fault.kind.value, fault)
    return kind
