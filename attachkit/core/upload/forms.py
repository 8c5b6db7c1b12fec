"""
Upload forms.

An upload form is a short-lived credential set issued by the service that
authorizes the client to write one object directly to storage. Parsing is
strict: a missing or empty field is an error, never a default.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..exceptions import InvalidForm
from ..logging import get_logger

logger = get_logger('attachkit.upload.forms')


@dataclass(frozen=True)
class FormV2:
    """Policy-signed multipart upload form (v2)."""
    acl: str
    key: str
    policy: str
    algorithm: str
    credential: str
    date: str
    signature: str
    attachment_id: Optional[int] = None
    attachment_id_string: Optional[str] = None
    
    def multipart_fields(self) -> List[Tuple[str, str]]:
        """
        Form fields in the order the storage origin accepts.
        
        The origin's signature check is sensitive to field order ("key"
        must come early), so this order is fixed.
        """
        return [
            ('key', self.key),
            ('acl', self.acl),
            ('x-amz-algorithm', self.algorithm),
            ('x-amz-credential', self.credential),
            ('x-amz-date', self.date),
            ('policy', self.policy),
            ('x-amz-signature', self.signature),
        ]


@dataclass(frozen=True)
class FormV3:
    """Resumable upload form (v3)."""
    cdn_key: str
    cdn_number: int
    signed_upload_location: str
    headers: Dict[str, str] = field(default_factory=dict)


def _require_mapping(raw: Any) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        logger.warning(f"Form response is not an object: {type(raw).__name__}")
        raise InvalidForm("Invalid form response")
    return raw


def _require_string(raw: Mapping[str, Any], name: str) -> str:
    value = raw.get(name)
    if not isinstance(value, str):
        raise InvalidForm(f"Missing {name}")
    if not value:
        raise InvalidForm(f"Empty {name}")
    return value


def _require_positive_int(raw: Mapping[str, Any], name: str) -> int:
    value = raw.get(name)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidForm(f"Missing or non-integer {name}: {value!r}")
    if value <= 0:
        raise InvalidForm(f"Invalid {name}: {value}")
    return value


def parse_form_v2(raw: Any) -> FormV2:
    """
    Parse a v2 upload form.
    
    Args:
        raw: Decoded JSON response
        
    Returns:
        Parsed form
        
    Raises:
        InvalidForm: If any required field is missing or empty, or if
            attachmentId is present but not a positive integer
    """
    data = _require_mapping(raw)
    
    attachment_id = None
    if data.get('attachmentId') is not None:
        attachment_id = _require_positive_int(data, 'attachmentId')
    
    attachment_id_string = data.get('attachmentIdString')
    if attachment_id_string is not None and not isinstance(attachment_id_string, str):
        raise InvalidForm(f"Invalid attachmentIdString: {attachment_id_string!r}")
    
    return FormV2(
        acl=_require_string(data, 'acl'),
        key=_require_string(data, 'key'),
        policy=_require_string(data, 'policy'),
        algorithm=_require_string(data, 'algorithm'),
        credential=_require_string(data, 'credential'),
        date=_require_string(data, 'date'),
        signature=_require_string(data, 'signature'),
        attachment_id=attachment_id,
        attachment_id_string=attachment_id_string,
    )


def parse_form_v3(raw: Any) -> FormV3:
    """
    Parse a v3 upload form.
    
    Args:
        raw: Decoded JSON response
        
    Returns:
        Parsed form
        
    Raises:
        InvalidForm: If key, cdn, signedUploadLocation or headers is
            missing, empty or ill-typed, or if cdn is not positive
    """
    data = _require_mapping(raw)
    
    cdn_key = _require_string(data, 'key')
    cdn_number = _require_positive_int(data, 'cdn')
    location = _require_string(data, 'signedUploadLocation')
    
    headers = data.get('headers')
    if not isinstance(headers, Mapping):
        raise InvalidForm("Missing headers")
    for name, value in headers.items():
        if not isinstance(name, str) or not isinstance(value, str):
            raise InvalidForm(f"Invalid header {name!r}: {value!r}")
    
    return FormV3(
        cdn_key=cdn_key,
        cdn_number=cdn_number,
        signed_upload_location=location,
        headers=dict(headers),
    )
