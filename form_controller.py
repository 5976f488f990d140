"""
Form controller for one certidão draft: field updates, the notification
email list and the submission to the relay.
"""
from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Union

import requests

import certidoes
from certidoes import CertidaoType
from config import get_settings


logger = logging.getLogger(__name__)

MAX_EMAILS = 5
SUCCESS_BANNER_SECONDS = 5.0
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailError(ValueError):
    """Rejected email candidate; str() is the message shown next to the input."""


class EmailList:
    """Ordered set of validated addresses, capped at MAX_EMAILS."""

    def __init__(self, emails=()):
        self._items: List[str] = []
        for email in emails:
            self.add(email)

    def add(self, email: str) -> None:
        if len(self._items) >= MAX_EMAILS:
            raise EmailError(certidoes.MSG_EMAIL_LIMIT)
        if not EMAIL_RE.match(email):
            raise EmailError(certidoes.MSG_EMAIL_INVALID)
        if email in self._items:
            raise EmailError(certidoes.MSG_EMAIL_DUPLICATE)
        self._items.append(email)

    def remove(self, email: str) -> None:
        if email in self._items:
            self._items.remove(email)

    def serialize(self) -> str:
        return ", ".join(self._items)

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def __contains__(self, email):
        return email in self._items

    def __repr__(self):
        return f"EmailList({self._items!r})"


# ─── Document type: fixed catalogue entry or free text ───────────────────
@dataclass(frozen=True)
class FixedDocumentType:
    kind: CertidaoType

    @property
    def selection(self) -> str:
        return self.kind.value

    @property
    def text(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class CustomDocumentType:
    text: str = ""

    @property
    def selection(self) -> str:
        return CertidaoType.OUTRO.value


DocumentType = Union[FixedDocumentType, CustomDocumentType]


def document_type_from_selection(value: str) -> Optional[DocumentType]:
    if not value:
        return None
    try:
        kind = CertidaoType(value)
    except ValueError:
        # not in the catalogue: keep the value itself as the document type
        return CustomDocumentType(value)
    if kind is CertidaoType.OUTRO:
        return CustomDocumentType("")
    return FixedDocumentType(kind)


@dataclass
class CertidaoDraft:
    empresa: str = ""
    cnpj: str = ""
    emails: EmailList = field(default_factory=EmailList)
    document_type: Optional[DocumentType] = None
    orgao: str = ""
    data_emissao: str = ""
    fim_vigencia: str = ""
    status_novo_venc: str = ""

    def to_payload(self) -> dict:
        return {
            "empresa": self.empresa,
            "cnpj": self.cnpj,
            "email": self.emails.serialize(),
            "tipoDocumento": self.document_type.text if self.document_type else "",
            "orgao": self.orgao,
            "dataEmissao": self.data_emissao,
            "fimVigencia": self.fim_vigencia,
            "statusNovoVenc": self.status_novo_venc,
        }

    def is_empty(self) -> bool:
        return not any(self.to_payload().values())


# wire name -> draft attribute, for the plain text/date fields
_PLAIN_FIELDS = {
    "cnpj": "cnpj",
    "orgao": "orgao",
    "dataEmissao": "data_emissao",
    "fimVigencia": "fim_vigencia",
    "statusNovoVenc": "status_novo_venc",
}


class SubmitState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SubmitStatus:
    state: SubmitState = SubmitState.IDLE
    message: str = ""
    detail: str = ""


class FormController:
    """Holds the draft of one editing session and submits it to the relay.

    ``session`` is anything with a ``requests``-style ``post``; ``timer_factory``
    builds the deferred call that clears the success banner.
    """

    def __init__(
        self,
        relay_url: Optional[str] = None,
        session=None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.relay_url = relay_url or get_settings().relay_url
        self.session = session or requests.Session()
        self.timer_factory = timer_factory

        self.draft = CertidaoDraft()
        self.current_email = ""
        self.email_error = ""
        self.status = SubmitStatus()
        self.is_submitting = False
        self._banner_timer: Optional[threading.Timer] = None

    # ─── Field updates ────────────────────────────────────────────────────
    def set_field(self, name: str, value: str) -> None:
        if name == "empresa":
            self.draft.empresa = value
            self.draft.cnpj = certidoes.cnpj_for(value)
        elif name == "docTypeSelect":
            self.draft.document_type = document_type_from_selection(value)
        elif name == "tipoDocumento":
            self.draft.document_type = CustomDocumentType(value)
        elif name == "currentEmail":
            self.current_email = value
        elif name in _PLAIN_FIELDS:
            setattr(self.draft, _PLAIN_FIELDS[name], value)
        else:
            raise KeyError(name)

    @property
    def selected_doc_type(self) -> str:
        dt = self.draft.document_type
        return dt.selection if dt else ""

    # ─── Emails ───────────────────────────────────────────────────────────
    def add_email(self, candidate: Optional[str] = None) -> bool:
        if candidate is None:
            candidate = self.current_email
        if not candidate:
            return False
        try:
            self.draft.emails.add(candidate)
        except EmailError as exc:
            self.email_error = str(exc)
            return False
        self.current_email = ""
        self.email_error = ""
        return True

    def remove_email(self, target: str) -> None:
        self.draft.emails.remove(target)

    # ─── Submission ───────────────────────────────────────────────────────
    def submit(self) -> bool:
        """Send the draft to the relay. Returns False if one is already in flight."""
        if self.is_submitting:
            logger.info("Submission already in flight, ignoring")
            return False

        self.is_submitting = True
        self._cancel_banner_timer()
        self.status = SubmitStatus(SubmitState.SUBMITTING)
        payload = {certidoes.ENVELOPE_KEY: self.draft.to_payload()}

        try:
            try:
                response = self.session.post(
                    self.relay_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
            except requests.RequestException as exc:
                logger.error("Could not reach relay %s: %s", self.relay_url, exc)
                self._fail(certidoes.MSG_UNREACHABLE, str(exc))
                return True

            text = response.text
            logger.info("Relay answered %s", response.status_code)

            try:
                data = json.loads(text)
            except ValueError:
                data = None
            if not isinstance(data, dict):
                self._fail(certidoes.MSG_INVALID_JSON, text)
                return True

            if data.get("ok"):
                self._succeed()
            else:
                self._fail(
                    data.get("message") or data.get("error") or certidoes.MSG_UNKNOWN_ERROR,
                    text,
                )
            return True
        finally:
            self.is_submitting = False

    def dismiss(self) -> None:
        self._cancel_banner_timer()
        self.status = SubmitStatus()

    def reset(self) -> None:
        self.draft = CertidaoDraft()
        self.current_email = ""
        self.email_error = ""

    def close(self) -> None:
        """Drop the pending banner timer and the HTTP session."""
        self._cancel_banner_timer()
        close = getattr(self.session, "close", None)
        if close is not None:
            close()

    def _succeed(self) -> None:
        logger.info("Certidão saved for %s", self.draft.empresa)
        self.status = SubmitStatus(SubmitState.SUCCESS, certidoes.MSG_SUCCESS)
        self.reset()
        self._banner_timer = self.timer_factory(SUCCESS_BANNER_SECONDS, self._expire_success)
        self._banner_timer.daemon = True
        self._banner_timer.start()

    def _fail(self, message: str, detail: str = "") -> None:
        logger.warning("Submission failed for %s: %s", self.draft.empresa, message)
        self.status = SubmitStatus(SubmitState.ERROR, message, detail)

    def _expire_success(self) -> None:
        if self.status.state is SubmitState.SUCCESS:
            self.status = SubmitStatus()
        self._banner_timer = None

    def _cancel_banner_timer(self) -> None:
        if self._banner_timer is not None:
            self._banner_timer.cancel()
            self._banner_timer = None
