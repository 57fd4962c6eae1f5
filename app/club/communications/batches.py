"""
Email Batches

Data update requests are sent in batches. Each run sends to the pending
recipients the club's daily quota allows; whatever is left waits for the next
run (manual or scheduled).

Batch status: pending -> processing -> completed | failed
Recipient status: pending | sent | failed
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Tuple

from loguru import logger

from app.config import dispatch_config
from app.i18n import translate
from database.supabase_client import ClubTable, get_supabase_client
from ..errors import InvalidRequestError, MailNotConfiguredError, NotFoundError
from ..members.models import MEMBER_TABLES, MemberKind
from ..settings import settings_service
from .mailer import OutgoingMail, club_transport, text_to_html
from .models import (
    BatchStatus,
    EmailBatchCreate,
    EmailBatchResponse,
    FieldPermission,
    MEMBER_NAME_PLACEHOLDER,
    ProcessResult,
    RecipientStatus,
    TokenStatus,
    UPDATABLE_FIELDS,
    UPDATE_LINK_PLACEHOLDER,
)

DAILY_WINDOW = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def update_link(token: str) -> str:
    return f"{dispatch_config.public_base_url.rstrip('/')}/update-data?token={token}"


def batch_counts(recipients: List[Dict[str, Any]]) -> Dict[str, int]:
    counts = {s.value: 0 for s in RecipientStatus}
    for r in recipients:
        status = r.get("status") or RecipientStatus.pending.value
        counts[status] = counts.get(status, 0) + 1
    return counts


def progress(recipients: List[Dict[str, Any]]) -> float:
    """Share of recipients already handled (sent or failed), 0-100"""
    if not recipients:
        return 0.0
    counts = batch_counts(recipients)
    done = counts[RecipientStatus.sent.value] + counts[RecipientStatus.failed.value]
    return round(done / len(recipients) * 100, 1)


def default_field_config(kind: MemberKind) -> Dict[str, Dict[str, str]]:
    return {
        field: {"label": field, "permission": FieldPermission.editable.value}
        for field in UPDATABLE_FIELDS.get(MemberKind(kind), [])
    }


def render(template: str, member_name: str, link: Optional[str] = None) -> str:
    text = template.replace(MEMBER_NAME_PLACEHOLDER, member_name)
    if link is not None:
        text = text.replace(UPDATE_LINK_PLACEHOLDER, link)
    return text


class EmailBatchService:
    """Email batch service"""

    def batches(self, club_id: str) -> ClubTable:
        return ClubTable("email_batches", club_id)

    def tokens(self, club_id: str) -> ClubTable:
        return ClubTable("data_update_tokens", club_id)

    def to_response(self, row: Dict[str, Any]) -> EmailBatchResponse:
        recipients = row.get("recipients") or []
        counts = batch_counts(recipients)
        return EmailBatchResponse(
            id=row["id"],
            status=row.get("status", BatchStatus.pending.value),
            subject=row.get("subject"),
            total=len(recipients),
            sent=counts[RecipientStatus.sent.value],
            failed=counts[RecipientStatus.failed.value],
            pending=counts[RecipientStatus.pending.value],
            progress=progress(recipients),
            emails_sent_count=row.get("emails_sent_count") or 0,
            error=row.get("error"),
            created_at=row.get("created_at"),
        )

    # =============================================
    # Create / read
    # =============================================

    def create_batch(self, club_id: str, request: EmailBatchCreate, locale: str = "es") -> EmailBatchResponse:
        recipients = [{
            "id": r.id,
            "name": r.name,
            "email": r.email,
            "type": r.type.value,
            "status": RecipientStatus.pending.value,
            "error": None,
        } for r in request.recipients if r.email]
        if not recipients:
            raise InvalidRequestError("mail.no_recipients")

        row = self.batches(club_id).insert({
            "status": BatchStatus.pending.value,
            "subject": request.subject,
            "body": request.body,
            "locale": locale,
            "recipients": recipients,
            "field_config": {k: v.model_dump(mode="json") for k, v in request.field_config.items()},
            "emails_sent_count": 0,
            "error": None,
        })
        logger.info(f"Email batch {row['id']} created for club {club_id} ({len(recipients)} recipients)")
        return self.to_response(row)

    def list_batches(self, club_id: str) -> List[EmailBatchResponse]:
        rows = self.batches(club_id).list(order_by="created_at", desc=True)
        return [self.to_response(r) for r in rows]

    def get_batch(self, club_id: str, batch_id: str) -> Dict[str, Any]:
        row = self.batches(club_id).get(batch_id)
        if not row:
            raise NotFoundError("batch.not_found")
        return row

    def _next_pending(self, club_id: str) -> Optional[Dict[str, Any]]:
        rows = self.batches(club_id).list(
            order_by="created_at", limit=1, status=BatchStatus.pending.value
        )
        return rows[0] if rows else None

    # =============================================
    # Daily quota
    # =============================================

    def daily_quota(self, settings: Dict[str, Any], now: Optional[datetime] = None) -> Tuple[int, int, datetime]:
        """
        (available, sent_in_window, window_start)

        The counter restarts when its window is older than 24 hours.
        """
        now = now or utcnow()
        count = settings.get("daily_email_count") or 0
        window_start = parse_timestamp(settings.get("daily_email_count_reset_at"))
        if window_start is None or now - window_start >= DAILY_WINDOW:
            count = 0
            window_start = now
        return dispatch_config.daily_email_limit - count, count, window_start

    # =============================================
    # Processing
    # =============================================

    async def process_batch(self, club_id: str, batch_id: Optional[str] = None) -> ProcessResult:
        """
        Send the next chunk of a batch (or of the oldest pending batch).

        Returns how many emails went out and the per-recipient errors.
        """
        batch = self.get_batch(club_id, batch_id) if batch_id else self._next_pending(club_id)
        if not batch:
            return ProcessResult()
        if batch.get("status") != BatchStatus.pending.value:
            return ProcessResult(batch_id=batch["id"], status=batch.get("status"))

        batch_id = batch["id"]
        locale = batch.get("locale") or "es"
        table = self.batches(club_id)
        table.update(batch_id, {"status": BatchStatus.processing.value})

        # a batch never stays in processing
        try:
            return await self._run(club_id, batch, locale)
        except Exception as e:
            logger.exception(f"Batch {batch_id} processing error: {e}")
            table.update(batch_id, {"status": BatchStatus.failed.value, "error": str(e)[:1000]})
            raise

    async def _run(self, club_id: str, batch: Dict[str, Any], locale: str) -> ProcessResult:
        batch_id = batch["id"]
        table = self.batches(club_id)

        try:
            transport = club_transport(club_id)
        except MailNotConfiguredError as e:
            message = translate(e.key, locale)
            table.update(batch_id, {"status": BatchStatus.failed.value, "error": message})
            logger.warning(f"Batch {batch_id} failed: mail not configured for club {club_id}")
            return ProcessResult(batch_id=batch_id, status=BatchStatus.failed, errors=[message])

        settings = settings_service.get_settings(club_id)
        available, sent_today, window_start = self.daily_quota(settings)
        if available <= 0:
            message = translate("batch.daily_limit", locale, limit=dispatch_config.daily_email_limit)
            table.update(batch_id, {"status": BatchStatus.pending.value})
            logger.info(f"Batch {batch_id} waiting: daily limit reached for club {club_id}")
            return ProcessResult(batch_id=batch_id, status=BatchStatus.pending, errors=[message])

        recipients = batch.get("recipients") or []
        pending = [r for r in recipients if r.get("status") == RecipientStatus.pending.value]
        chunk = pending[:min(available, dispatch_config.batch_chunk_size)]

        if not chunk:
            final = self._final_status(recipients)
            table.update(batch_id, {"status": final.value})
            return ProcessResult(batch_id=batch_id, status=final)

        results = await self._send_chunk(club_id, batch, chunk, transport, locale)

        # persist recipient outcomes
        by_id = {r["id"]: r for r in results}
        errors = []
        sent = []
        for recipient in recipients:
            outcome = by_id.get(recipient["id"])
            if not outcome:
                continue
            recipient["status"] = outcome["status"]
            recipient["error"] = outcome.get("error")
            if outcome["status"] == RecipientStatus.sent.value:
                recipient["sent_at"] = utcnow().isoformat()
                sent.append(recipient)
            else:
                errors.append(f"{recipient.get('email')}: {outcome.get('error')}")

        remaining = [r for r in recipients if r.get("status") == RecipientStatus.pending.value]
        final = self._final_status(recipients)

        table.update(batch_id, {
            "status": final.value,
            "recipients": recipients,
            "emails_sent_count": (batch.get("emails_sent_count") or 0) + len(sent),
            "error": None if final != BatchStatus.failed else "; ".join(errors)[:1000],
        })
        settings_service.update_settings(club_id, {
            "daily_email_count": sent_today + len(sent),
            "daily_email_count_reset_at": window_start.isoformat(),
        })
        self._flag_members(club_id, sent)

        logger.info(
            f"Batch {batch_id}: {len(sent)} sent, {len(errors)} failed, "
            f"{len(remaining)} pending -> {final.value}"
        )
        return ProcessResult(
            batch_id=batch_id,
            status=final,
            processed_count=len(sent),
            errors=errors,
        )

    def _final_status(self, recipients: List[Dict[str, Any]]) -> BatchStatus:
        """pending while anyone is left, failed when nobody got the email"""
        statuses = [r.get("status") for r in recipients]
        if RecipientStatus.pending.value in statuses:
            return BatchStatus.pending
        if statuses and all(s == RecipientStatus.failed.value for s in statuses):
            return BatchStatus.failed
        return BatchStatus.completed

    async def _send_chunk(
        self,
        club_id: str,
        batch: Dict[str, Any],
        chunk: List[Dict[str, Any]],
        transport,
        locale: str
    ) -> List[Dict[str, Any]]:
        """Create one token per recipient, send, and report each outcome"""
        club_name = transport.sender.club_name
        expires_at = utcnow() + timedelta(days=dispatch_config.token_valid_days)
        batch_config = batch.get("field_config") or {}

        token_rows = []
        for recipient in chunk:
            token_rows.append({
                "id": str(uuid.uuid4()),
                "batch_id": batch["id"],
                "member_id": recipient["id"],
                "member_type": recipient["type"],
                "member_name": recipient.get("name"),
                "field_config": batch_config or default_field_config(recipient["type"]),
                "status": TokenStatus.pending.value,
                "expires_at": expires_at.isoformat(),
            })
        self.tokens(club_id).insert_many(token_rows)

        subject_template = batch.get("subject") or translate(
            "mail.default_update_subject", locale, club_name=club_name
        )
        body_template = batch.get("body") or translate(
            "mail.default_update_body", locale, club_name=club_name
        )
        body_html = text_to_html(body_template)

        mails = []
        for recipient, token in zip(chunk, token_rows):
            name = recipient.get("name") or ""
            mails.append(OutgoingMail(
                to=recipient["email"],
                subject=render(subject_template, name),
                html=render(body_html, name, update_link(token["id"])),
                recipient_id=recipient["id"],
            ))

        results = await transport.send_bulk(mails)

        outcomes = []
        token_by_member = {t["member_id"]: t["id"] for t in token_rows}
        for result in results:
            if result.success:
                outcomes.append({"id": result.recipient_id, "status": RecipientStatus.sent.value})
            else:
                outcomes.append({
                    "id": result.recipient_id,
                    "status": RecipientStatus.failed.value,
                    "error": result.error,
                })
                # the link was never delivered
                self.tokens(club_id).delete(token_by_member[result.recipient_id])
        return outcomes

    def _flag_members(self, club_id: str, recipients: List[Dict[str, Any]]) -> None:
        for recipient in recipients:
            table = MEMBER_TABLES.get(MemberKind(recipient["type"]))
            ClubTable(table, club_id).update(recipient["id"], {"update_request_active": True})

    async def retry_batch(self, club_id: str, batch_id: str) -> ProcessResult:
        """Put failed recipients back to pending and process again"""
        batch = self.get_batch(club_id, batch_id)
        recipients = batch.get("recipients") or []

        failed = [r for r in recipients if r.get("status") == RecipientStatus.failed.value]
        pending = [r for r in recipients if r.get("status") == RecipientStatus.pending.value]
        if not failed and not pending:
            raise InvalidRequestError("batch.no_failed")

        for recipient in failed:
            recipient["status"] = RecipientStatus.pending.value
            recipient["error"] = None

        self.batches(club_id).update(batch_id, {
            "status": BatchStatus.pending.value,
            "recipients": recipients,
            "error": None,
        })
        logger.info(f"Retrying batch {batch_id}: {len(failed)} failed recipients reset")
        return await self.process_batch(club_id, batch_id)

    async def process_all_pending(self) -> Dict[str, Any]:
        """
        Process pending batches of every club, oldest first.

        A club stops at its first batch that cannot send (quota or mail
        settings); an error in one club does not stop the others.
        """
        result = get_supabase_client().table("email_batches").select(
            "id, club_id, created_at"
        ).eq("status", BatchStatus.pending.value).order("created_at").execute()

        by_club: Dict[str, List[str]] = {}
        for row in result.data or []:
            by_club.setdefault(row["club_id"], []).append(row["id"])

        summary = {"clubs": len(by_club), "batches": 0, "emails_sent": 0, "errors": []}
        for club_id, batch_ids in by_club.items():
            for batch_id in batch_ids:
                try:
                    outcome = await self.process_batch(club_id, batch_id)
                except Exception as e:
                    logger.error(f"Club {club_id} batch {batch_id} failed: {e}")
                    summary["errors"].append(f"{batch_id}: {e}")
                    break
                summary["batches"] += 1
                summary["emails_sent"] += outcome.processed_count
                if outcome.status != BatchStatus.completed:
                    break
        return summary


email_batch_service = EmailBatchService()
