from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, datetime
from urllib.parse import urlparse

from ..models.anomaly import FailureMeta, PreflightRecord
from ..models.cell import CellKind
from ..models.sheet import Sheet

"""Syntactic contract-URL preflight and failure classification.

This is the offline half of the URL preflight collaborator: it checks the
contract-source column for malformed links (hidden characters, bad scheme,
unparseable URL) and classifies load failures reported by a fetcher from
HTTP status / error code / thrown message. Nothing here performs network I/O.
"""

__all__ = [
    "FAILURE_CATEGORIES",
    "MAX_CONTRACT_BYTES",
    "UrlValidation",
    "get_guidance_for_category",
    "get_category_label",
    "detect_hidden_characters",
    "validate_contract_url",
    "classify_contract_failure",
    "preflight_contract_urls",
]

MAX_CONTRACT_BYTES = 25 * 1024 * 1024

_HIDDEN_CHAR_RE = re.compile(
    r"[\u200B-\u200D\uFEFF\u00AD\u2060-\u2064\u206A-\u206F\x00-\x1F\x7F-\x9F]"
)

_GUIDANCE: dict[str, str] = {
    "cors_blocked": 'Browser security blocked direct access. Try "Open in New Tab" to verify the link works.',
    "http_unauthorized": "Authentication required (401). Request credentials or an updated link from the source.",
    "http_forbidden": "Access denied (403). The signed link may be expired or restricted. Request a new link.",
    "http_not_found": "File not found (404). The contract may have been moved or deleted. Verify with source.",
    "http_rate_limited": "Too many requests (429). Wait a few minutes and retry, or open in new tab.",
    "http_server_error": "Remote server error (5xx). The hosting service may be experiencing issues. Retry later.",
    "http_other": 'Unexpected HTTP response. Try "Open in New Tab" to diagnose.',
    "not_pdf": "The URL does not point to a valid PDF file. Verify the link is correct.",
    "file_too_large": (
        f"File exceeds {MAX_CONTRACT_BYTES // 1024 // 1024}MB limit. "
        'Use "Open in New Tab" to download locally.'
    ),
    "timeout": "Request timed out. The server may be slow or the file very large. Retry or open in new tab.",
    "network_error": "Network connection failed. Check your internet connection and retry.",
    "invalid_url": "The contract URL is malformed or invalid. Re-copy the link carefully.",
    "hidden_chars": "Hidden/invisible characters detected in URL. Re-copy the link as plain text.",
    "parse_error": "PDF file could not be parsed. The file may be corrupted or password-protected.",
    "unknown": 'An unexpected error occurred. Try "Open in New Tab" to verify the link.',
}

_LABELS: dict[str, str] = {
    "cors_blocked": "CORS Blocked",
    "http_unauthorized": "Unauthorized (401)",
    "http_forbidden": "Forbidden (403)",
    "http_not_found": "Not Found (404)",
    "http_rate_limited": "Rate Limited (429)",
    "http_server_error": "Server Error (5xx)",
    "http_other": "HTTP Error (Other)",
    "not_pdf": "Not a PDF",
    "file_too_large": "File Too Large",
    "timeout": "Timeout",
    "network_error": "Network Error",
    "invalid_url": "Invalid URL",
    "hidden_chars": "Hidden Characters",
    "parse_error": "Parse Error",
    "unknown": "Unknown",
}

FAILURE_CATEGORIES = tuple(_GUIDANCE)

_ERROR_CODE_CATEGORIES: dict[str, tuple[str, str]] = {
    "timeout": ("timeout", "high"),
    "cors_blocked": ("cors_blocked", "medium"),
    "network_error": ("network_error", "medium"),
    "not_pdf": ("not_pdf", "medium"),
    "not_supported_type": ("not_pdf", "medium"),
    "pdf_parse_error": ("parse_error", "high"),
    "invalid_url": ("invalid_url", "high"),
    "file_too_large": ("file_too_large", "high"),
    "host_not_allowed": ("cors_blocked", "medium"),
    "blocked_private_network": ("cors_blocked", "medium"),
    "proxy_failed": ("network_error", "medium"),
}

_PDF_CONTENT_TYPES = ("application/pdf", "application/octet-stream", "binary/octet-stream")


class UrlValidation:
    __slots__ = ("valid", "category", "confidence", "message")

    def __init__(self, valid: bool, category: str | None = None, confidence: str | None = None,
                 message: str | None = None) -> None:
        self.valid = valid
        self.category = category
        self.confidence = confidence
        self.message = message

    def __repr__(self) -> str:  # pragma: no cover
        return f"UrlValidation(valid={self.valid}, category={self.category!r})"


def get_guidance_for_category(category: str | None) -> str:
    return _GUIDANCE.get(category or "unknown", _GUIDANCE["unknown"])


def get_category_label(category: str | None) -> str:
    return _LABELS.get(category or "unknown", "Unknown")


def detect_hidden_characters(url: str) -> bool:
    return bool(_HIDDEN_CHAR_RE.search(url))


def validate_contract_url(url: object) -> UrlValidation:
    if not url or not isinstance(url, str):
        return UrlValidation(False, "invalid_url", "high", "URL is empty or not a string")
    trimmed = url.strip()
    if not trimmed:
        return UrlValidation(False, "invalid_url", "high", "URL is empty")
    if detect_hidden_characters(trimmed):
        return UrlValidation(False, "hidden_chars", "high", "URL contains hidden or control characters")
    try:
        parsed = urlparse(trimmed)
    except ValueError:
        return UrlValidation(False, "invalid_url", "high", "URL format is invalid")
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        return UrlValidation(False, "invalid_url", "high", "URL format is invalid")
    if parsed.scheme.lower() not in ("http", "https"):
        return UrlValidation(False, "invalid_url", "high", f"Unsupported protocol: {parsed.scheme.lower()}:")
    if not parsed.netloc:
        return UrlValidation(False, "invalid_url", "high", "URL format is invalid")
    return UrlValidation(True)


def _classify_http_status(status: int) -> tuple[str, str] | None:
    if status == 401:
        return "http_unauthorized", "high"
    if status == 403:
        return "http_forbidden", "high"
    if status == 404:
        return "http_not_found", "high"
    if status == 429:
        return "http_rate_limited", "high"
    if 500 <= status < 600:
        return "http_server_error", "high"
    if 400 <= status < 500:
        return "http_other", "medium"
    return None


def _classify_thrown_message(message: str) -> tuple[str, str] | None:
    lower = message.lower()
    if "timeout" in lower or "timed out" in lower:
        return "timeout", "medium"
    if "cors" in lower or "cross-origin" in lower:
        return "cors_blocked", "medium"
    if "network" in lower or "failed to fetch" in lower or "load failed" in lower:
        return "network_error", "medium"
    if "parse" in lower or "invalid pdf" in lower or "corrupted" in lower:
        return "parse_error", "medium"
    return None


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def classify_contract_failure(
    *,
    url: str | None = None,
    error_code: str | None = None,
    http_status: int | None = None,
    content_type: str | None = None,
    size_bytes: int | None = None,
    thrown_message: str | None = None,
    pdf_signature_valid: bool | None = None,
    detected_at: str | None = None,
) -> FailureMeta:
    """Classify a contract load failure.

    Evaluation order: URL syntax, HTTP status, size limit, content type,
    PDF signature, fetcher error code, thrown message, then "unknown".
    """
    stamp = detected_at or _now_iso()

    def _meta(category: str, confidence: str, message: str) -> FailureMeta:
        return FailureMeta(
            category=category,
            confidence=confidence,
            message=message,
            detected_at=stamp,
            url=url,
            http_status=http_status,
            content_type=content_type,
            size_bytes=size_bytes,
        )

    if url:
        validation = validate_contract_url(url)
        if not validation.valid and validation.category:
            return _meta(
                validation.category,
                validation.confidence or "high",
                validation.message or get_guidance_for_category(validation.category),
            )

    if http_status:
        by_status = _classify_http_status(http_status)
        if by_status:
            category, confidence = by_status
            return _meta(category, confidence, f"HTTP {http_status}: {get_guidance_for_category(category)}")

    if size_bytes is not None and size_bytes > MAX_CONTRACT_BYTES:
        size_mb = f"{size_bytes / 1024 / 1024:.1f}"
        return _meta(
            "file_too_large", "high",
            f"File size ({size_mb}MB) exceeds limit. {get_guidance_for_category('file_too_large')}",
        )

    if content_type and not any(t in content_type.lower() for t in _PDF_CONTENT_TYPES):
        return _meta(
            "not_pdf", "medium",
            f'Content-Type "{content_type}" is not PDF. {get_guidance_for_category("not_pdf")}',
        )

    if pdf_signature_valid is False:
        return _meta(
            "not_pdf", "high",
            f"File does not have valid PDF signature. {get_guidance_for_category('not_pdf')}",
        )

    if error_code:
        by_code = _ERROR_CODE_CATEGORIES.get(error_code.lower())
        if by_code:
            return _meta(by_code[0], by_code[1], get_guidance_for_category(by_code[0]))

    if thrown_message:
        by_message = _classify_thrown_message(thrown_message)
        if by_message:
            return _meta(by_message[0], by_message[1], get_guidance_for_category(by_message[0]))

    return _meta("unknown", "low", get_guidance_for_category("unknown"))


def preflight_contract_urls(sheets: Iterable[Sheet]) -> list[PreflightRecord]:
    """Check the contract column of every sheet; return records for invalid URLs only.

    Cells that are not text, blank, or do not even parse as a URL with a
    scheme are skipped (nothing to preflight).
    """
    records: list[PreflightRecord] = []
    for sheet in sheets:
        header = sheet.contract_header
        if not header:
            continue
        for row_index in range(sheet.row_count):
            cell = sheet.cell(row_index, header)
            if cell.kind is not CellKind.TEXT:
                continue
            url = str(cell.raw).strip()
            if not url or ":" not in url:
                continue
            validation = validate_contract_url(url)
            if validation.valid:
                continue
            records.append(PreflightRecord(
                sheet_name=sheet.name,
                row_index=row_index,
                field_name=header,
                valid=False,
                category=validation.category,
                confidence=validation.confidence,
                message=validation.message,
                url=url,
            ))
    return records
