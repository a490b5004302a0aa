"""Contact and company email deduplication for the company profile."""

import re
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from app.schemas.company_profile import CompanyEmail, CompanyEmailEntry, ContactPerson
from app.utils.row_values import normalize_email, pick_first_text

_EMAIL_SHAPE = re.compile(r"\S+@\S+\.\S+")


class EmaillessContactPolicy(str, Enum):
    """What to do with contacts that carry no email at all."""

    KEEP = "keep"
    DROP = "drop"


def has_contact_identity(contact: ContactPerson) -> bool:
    return bool(
        pick_first_text(
            contact.name,
            contact.business_email,
            contact.supplement_email_1,
            contact.supplement_email_2,
            contact.tel,
            contact.whatsapp,
            contact.fax,
            contact.linkedin,
            contact.twitter,
            contact.instagram,
            contact.facebook,
            contact.social_media,
            contact.region,
        )
    )


def contact_email_key(contact: ContactPerson) -> str:
    for email in contact.emails:
        key = normalize_email(email)
        if key:
            return key
    return ""


def dedupe_contacts(
    contacts: Iterable[ContactPerson],
    emailless: EmaillessContactPolicy = EmaillessContactPolicy.KEEP,
) -> List[ContactPerson]:
    """Merge contacts by normalized email; the first row seen wins.

    Rows without any identifying field are dropped. Rows without an email are
    never merged with each other; ``emailless`` decides whether they are kept.
    Output keeps fetch order.
    """
    kept: List[ContactPerson] = []
    seen: set = set()
    for contact in contacts:
        if not has_contact_identity(contact):
            continue
        key = contact_email_key(contact)
        if not key:
            if emailless is EmaillessContactPolicy.KEEP:
                kept.append(contact)
            continue
        if key in seen:
            continue
        seen.add(key)
        kept.append(contact)
    return kept


def sort_by_email(contacts: Sequence[ContactPerson]) -> List[ContactPerson]:
    return sorted(contacts, key=contact_email_key)


def _email_source_label(row: CompanyEmail) -> str:
    return pick_first_text(row.source_description, row.source, row.importance) or "company_email"


def label_email_provenance(rows: Iterable[CompanyEmail], table: Optional[str]) -> List[CompanyEmail]:
    """Fill missing source fields with the table the rows were read from."""
    if not table:
        return list(rows)
    return [
        row.model_copy(
            update={
                "source": row.source or table,
                "source_description": row.source_description or table,
            }
        )
        for row in rows
    ]


def dedupe_company_emails(rows: Iterable[CompanyEmail]) -> List[CompanyEmailEntry]:
    """Keep address-shaped emails, one entry per normalized email."""
    deduped: Dict[str, CompanyEmailEntry] = {}
    for row in rows:
        email = (row.email or "").strip()
        if not email or not _EMAIL_SHAPE.search(email):
            continue
        key = email.lower()
        if key not in deduped:
            deduped[key] = CompanyEmailEntry(email=email, source=_email_source_label(row))
    return list(deduped.values())
