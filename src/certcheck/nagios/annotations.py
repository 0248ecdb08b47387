import logging
import socket
from typing import Union

from ..exceptions import AnnotatedError

__module__ = "certcheck.nagios.annotations"

logger = logging.getLogger(__name__)

RUNTIME_TIMEOUT_REACHED_ADVICE = "plugin runtime exceeded specified timeout value; consider increasing value if this is routinely encountered"
CONNECTION_RESET_BY_PEER_ADVICE = "consider checking firewall, certificate/port bindings or maximum supported connections for remote service"
CONNECTION_REFUSED_ADVICE = "consider double-checking specified port and remote service state (i.e., make sure service is actually running on given port)"


def default_error_annotation_mappings() -> dict[type, str]:
    return {
        TimeoutError: RUNTIME_TIMEOUT_REACHED_ADVICE,
        socket.timeout: RUNTIME_TIMEOUT_REACHED_ADVICE,
        ConnectionResetError: CONNECTION_RESET_BY_PEER_ADVICE,
        ConnectionRefusedError: CONNECTION_REFUSED_ADVICE,
    }


def _matches(err: BaseException, known: type) -> bool:
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, known):
            return True
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return False


def annotation_present(err: BaseException, advice: str) -> bool:
    return advice.lower() in str(err).lower()


def annotate_error(
    err: BaseException, mappings: dict[type, str] = None
) -> BaseException:
    """Appends advice for each known error kind found in the error's cause chain

    Advice already present in the message is not appended again.
    """
    mappings = mappings or default_error_annotation_mappings()
    annotated = err
    for known, advice in mappings.items():
        if not _matches(err, known) or annotation_present(annotated, advice):
            continue
        wrapped = AnnotatedError(f"{annotated}: {advice}")
        wrapped.__cause__ = annotated
        annotated = wrapped
    if annotated is not err:
        logger.debug(f"annotated error: {annotated}")
    return annotated


def annotate_errors(
    errors: list[Union[BaseException, None]], mappings: dict[type, str] = None
) -> list[BaseException]:
    return [annotate_error(err, mappings) for err in errors if err is not None]


def unique_errors(errors: list[Union[BaseException, None]]) -> list[BaseException]:
    """Drops errors whose message was already seen, compared case-insensitively"""
    seen = set()
    unique = []
    for err in errors:
        if err is None:
            continue
        message = str(err).lower()
        if message in seen:
            continue
        seen.add(message)
        unique.append(err)
    return unique
