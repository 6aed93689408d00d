"""Extension and size policy for incoming uploads.

Pure functions only: validation classifies, it never raises and never
touches storage. Size is checked here only when it is known up front; the
upload session enforces the ceiling incrementally while bytes arrive.
"""

from dataclasses import dataclass
from pathlib import PurePosixPath

from pad_image_upload.core.exceptions import RejectionReason


@dataclass(frozen=True)
class UploadPolicy:
    """Configured upload limits.

    An empty ``allowed_extensions`` means any extension is accepted and a
    ``max_file_size`` of None means size is unbounded.
    """

    allowed_extensions: tuple[str, ...] = ()
    max_file_size: int | None = None


@dataclass(frozen=True)
class Accepted:
    """Validation outcome for an acceptable upload."""


@dataclass(frozen=True)
class Rejected:
    """Validation outcome for a rejected upload."""

    reason: RejectionReason
    message: str


ValidationOutcome = Accepted | Rejected


def file_extension(filename: str) -> str:
    """Return the lower-case extension of a filename without the dot."""
    # Clients on Windows may send full paths
    name = PurePosixPath(filename.replace("\\", "/")).name
    return PurePosixPath(name).suffix.lstrip(".").lower()


def validate_upload(
    filename: str,
    declared_size: int | None,
    allowed_extensions: tuple[str, ...] | list[str],
    max_file_size: int | None,
) -> ValidationOutcome:
    """Classify an upload's declared metadata against the configured limits.

    Args:
        filename: Filename declared by the client
        declared_size: Size announced before the body, None when unknown
        allowed_extensions: Lower-case extensions, empty for no restriction
        max_file_size: Byte ceiling, None for unbounded

    Returns:
        Accepted, or Rejected with the reason
    """
    if allowed_extensions:
        extension = file_extension(filename)
        allowed = {ext.lower() for ext in allowed_extensions}
        if extension not in allowed:
            return Rejected(
                RejectionReason.EXTENSION,
                f"File type '{extension or 'none'}' not allowed. "
                f"Allowed types: {', '.join(allowed_extensions)}",
            )

    if (
        declared_size is not None
        and max_file_size is not None
        and declared_size > max_file_size
    ):
        return Rejected(
            RejectionReason.SIZE,
            f"File size exceeds maximum allowed size of {max_file_size} bytes",
        )

    return Accepted()


def check_policy(
    filename: str, declared_size: int | None, policy: UploadPolicy
) -> ValidationOutcome:
    """Validate against an UploadPolicy."""
    return validate_upload(
        filename, declared_size, policy.allowed_extensions, policy.max_file_size
    )
