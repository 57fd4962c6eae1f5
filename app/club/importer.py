"""
CSV member importer

The CSV header must start with the expected columns of the member type, in
order; trailing extra columns are ignored.
"""
import csv
import io
import re
from typing import List, Dict, Any

from loguru import logger
from pydantic import ValidationError

from database.supabase_client import ClubTable
from .errors import InvalidRequestError
from .members.models import (
    CREATE_MODELS,
    DEFAULT_AVATAR,
    MEMBER_TABLES,
    MemberKind,
    PaymentStatus,
)
from .members.service import NO_TEAM

IMPORT_COLUMNS = {
    MemberKind.player: [
        "name", "lastName", "sex", "birthDate", "dni", "nationality", "healthCardNumber",
        "address", "city", "postalCode", "tutorEmail", "tutorPhone", "iban",
        "teamName", "jerseyNumber", "monthlyFee", "isOwnTutor", "tutorName",
        "tutorLastName", "tutorDni", "kitSize", "startDate", "endDate",
        "hasInterruption", "medicalCheckCompleted",
    ],
    MemberKind.coach: [
        "name", "lastName", "sex", "role", "email", "phone", "teamName",
        "birthDate", "dni", "nationality", "healthCardNumber", "address", "city",
        "postalCode", "iban", "isOwnTutor", "tutorName", "tutorLastName",
        "tutorDni", "monthlyPayment", "kitSize", "startDate", "endDate",
        "hasInterruption",
    ],
    MemberKind.staff: ["name", "lastName", "sex", "role", "email", "phone"],
    MemberKind.socio: [
        "name", "lastName", "email", "phone", "dni",
        "paymentType", "fee", "socioNumber",
    ],
}

BOOLEAN_COLUMNS = {"isOwnTutor", "hasInterruption", "medicalCheckCompleted"}
TRUE_VALUES = {"true", "sí", "si", "yes", "1", "x"}


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def parse_csv(content: bytes, kind: MemberKind) -> List[Dict[str, str]]:
    """Decode and validate the header; returns the non-empty rows"""
    text = content.decode("utf-8-sig", errors="replace")
    if not text.strip():
        raise InvalidRequestError("import.empty")

    reader = csv.DictReader(io.StringIO(text))
    headers = [h.strip() for h in (reader.fieldnames or [])]
    expected = IMPORT_COLUMNS[kind]
    if headers[:len(expected)] != expected:
        raise InvalidRequestError("import.bad_header", expected=", ".join(expected))

    rows = []
    for row in reader:
        cleaned = {(k or "").strip(): (v or "").strip() for k, v in row.items() if k}
        if any(cleaned.get(col) for col in expected):
            rows.append(cleaned)
    if not rows:
        raise InvalidRequestError("import.empty")
    return rows


def convert_row(kind: MemberKind, row: Dict[str, str]) -> Dict[str, Any]:
    """CSV row to member field names; empty values are dropped"""
    data: Dict[str, Any] = {}
    for column in IMPORT_COLUMNS[kind]:
        value = row.get(column, "")
        if value == "" or column == "teamName":
            continue
        if column in BOOLEAN_COLUMNS:
            data[camel_to_snake(column)] = parse_bool(value)
        elif column in ("sex", "paymentType"):
            data[camel_to_snake(column)] = value.lower()
        elif column in ("monthlyFee", "monthlyPayment", "fee"):
            data[camel_to_snake(column)] = value.replace(",", ".")
        else:
            data[camel_to_snake(column)] = value
    return data


def import_members(club_id: str, kind: MemberKind, content: bytes) -> int:
    """Validate every row then insert them all in one request"""
    kind = MemberKind(kind)
    rows = parse_csv(content, kind)

    teams = {}
    if kind in (MemberKind.player, MemberKind.coach):
        for team in ClubTable("teams", club_id).list():
            teams[(team.get("name") or "").strip().lower()] = team

    model = CREATE_MODELS[kind]
    records = []
    for line, row in enumerate(rows, start=2):
        try:
            record = model(**convert_row(kind, row)).model_dump(mode="json", exclude_none=True)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise InvalidRequestError("import.invalid_row", line=line, fields=fields)

        if kind in (MemberKind.player, MemberKind.coach):
            team = teams.get(row.get("teamName", "").strip().lower())
            record["team_id"] = team["id"] if team else None
            record["team_name"] = team["name"] if team else NO_TEAM
        if kind != MemberKind.socio:
            record.setdefault("avatar", DEFAULT_AVATAR)
            record.setdefault("custom_fields", {})
        if kind == MemberKind.player:
            record.setdefault("payment_status", PaymentStatus.pending.value)
        records.append(record)

    inserted = ClubTable(MEMBER_TABLES[kind], club_id).insert_many(records)
    logger.info(f"Imported {len(inserted)} {kind.value} records into club {club_id}")
    return len(inserted)
