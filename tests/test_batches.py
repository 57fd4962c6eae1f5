"""
Email Batch Tests - quota, processing, retries
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.club.communications import batches as batches_module
from app.club.communications.batches import (
    batch_counts,
    email_batch_service,
    progress,
    render,
    update_link,
)
from app.club.communications.models import BatchRecipient, BatchStatus, EmailBatchCreate, FieldConfig
from app.club.errors import InvalidRequestError, MailNotConfiguredError
from app.club.members.models import MemberKind
from app.config import dispatch_config

OTHER_CLUB_ID = "00000000-0000-0000-0000-0000000000c2"


def _players(fake_db, club_id, count):
    players = []
    for i in range(count):
        players.append(fake_db.add(
            "players", club_id=club_id, name=f"Jugador{i}", last_name="Demo",
            tutor_email=f"familia{i}@demo.es", update_request_active=False
        ))
    return players


def _request(players, **kwargs):
    return EmailBatchCreate(
        recipients=[
            BatchRecipient(id=p["id"], name=p["name"], email=p["tutor_email"], type=MemberKind.player)
            for p in players
        ],
        **kwargs
    )


class TestHelpers:

    def test_counts_and_progress(self):
        recipients = [{"status": "sent"}, {"status": "failed"}, {"status": "pending"}, {}]
        assert batch_counts(recipients) == {"pending": 2, "sent": 1, "failed": 1}
        assert progress(recipients) == 50.0
        assert progress([]) == 0.0

    def test_render(self):
        text = render("Hola [Nombre del Miembro]: [updateLink]", "Ana", "https://x/update-data?token=t")
        assert text == "Hola Ana: https://x/update-data?token=t"

    def test_render_link_inside_anchor(self):
        """A body with its own anchor gets the bare URL in href"""
        text = render('<a href="[updateLink]">Actualizar</a>', "Ana", "https://x/update-data?token=t")
        assert text == '<a href="https://x/update-data?token=t">Actualizar</a>'

    def test_update_link(self):
        assert update_link("abc").endswith("/update-data?token=abc")

    def test_daily_quota_window(self):
        """The counter restarts after 24 hours"""
        now = datetime(2025, 3, 1, 12, tzinfo=timezone.utc)
        recent = {"daily_email_count": 40, "daily_email_count_reset_at": (now - timedelta(hours=1)).isoformat()}
        old = {"daily_email_count": 40, "daily_email_count_reset_at": (now - timedelta(hours=25)).isoformat()}

        available, sent, start = email_batch_service.daily_quota(recent, now)
        assert (available, sent) == (dispatch_config.daily_email_limit - 40, 40)

        available, sent, start = email_batch_service.daily_quota(old, now)
        assert (available, sent, start) == (dispatch_config.daily_email_limit, 0, now)


class TestCreateBatch:

    def test_recipients_without_email_dropped(self, fake_db, club):
        players = _players(fake_db, club, 2)
        request = _request(players)
        request.recipients.append(BatchRecipient(id="x", name="Sin email", type=MemberKind.player))

        batch = email_batch_service.create_batch(club, request, locale="ca")
        assert batch.total == 2
        assert batch.pending == 2
        assert batch.status == BatchStatus.pending
        assert fake_db.rows("email_batches")[0]["locale"] == "ca"

    def test_no_recipients(self, fake_db, club):
        request = EmailBatchCreate(recipients=[BatchRecipient(id="x", name="Sin", type=MemberKind.player)])
        with pytest.raises(InvalidRequestError):
            email_batch_service.create_batch(club, request)


@pytest.mark.asyncio
class TestProcessBatch:

    async def test_process_sends_links_and_flags_members(self, fake_db, club, fake_transport):
        players = _players(fake_db, club, 2)
        batch = email_batch_service.create_batch(club, _request(players))

        result = await email_batch_service.process_batch(club, batch.id)

        assert result.status == BatchStatus.completed
        assert result.processed_count == 2
        tokens = fake_db.rows("data_update_tokens")
        assert len(tokens) == 2
        assert all(t["status"] == "pending" for t in tokens)
        assert {t["member_id"] for t in tokens} == {p["id"] for p in players}
        for mail in fake_transport.sent:
            assert any(f'<a href="{update_link(t["id"])}">' in mail.html for t in tokens)
            assert any(f'<a href="{update_link(t["id"])}">' in mail.html for t in tokens)
            assert "[Nombre del Miembro]" not in mail.html
        assert all(p["update_request_active"] for p in fake_db.rows("players"))

        settings = fake_db.rows("club_settings")[0]
        assert settings["daily_email_count"] == 2
        assert fake_db.rows("email_batches")[0]["emails_sent_count"] == 2

    async def test_default_field_config(self, fake_db, club, fake_transport):
        """Without a field configuration every updatable field is editable"""
        players = _players(fake_db, club, 1)
        batch = email_batch_service.create_batch(club, _request(players))
        await email_batch_service.process_batch(club, batch.id)

        config = fake_db.rows("data_update_tokens")[0]["field_config"]
        assert config["iban"]["permission"] == "editable"
        assert "tutor_email" in config

    async def test_daily_limit_splits_batch(self, fake_db, club, fake_transport, monkeypatch):
        """Recipients over the quota wait for a later run"""
        monkeypatch.setattr(dispatch_config, "daily_email_limit", 2)
        players = _players(fake_db, club, 3)
        batch = email_batch_service.create_batch(club, _request(players))

        first = await email_batch_service.process_batch(club, batch.id)
        assert first.processed_count == 2
        assert first.status == BatchStatus.pending

        blocked = await email_batch_service.process_batch(club, batch.id)
        assert blocked.processed_count == 0
        assert blocked.status == BatchStatus.pending
        assert "2" in blocked.errors[0]

        # next day
        yesterday = (datetime.now(timezone.utc) - timedelta(hours=25)).isoformat()
        fake_db.table("club_settings").update({"daily_email_count_reset_at": yesterday}).execute()
        last = await email_batch_service.process_batch(club, batch.id)
        assert last.processed_count == 1
        assert last.status == BatchStatus.completed
        assert email_batch_service.to_response(fake_db.rows("email_batches")[0]).progress == 100.0

    async def test_mail_not_configured_fails_batch(self, fake_db, club, monkeypatch):
        """The failure message uses the batch locale"""
        def _no_transport(club_id):
            raise MailNotConfiguredError("mail.not_configured")

        monkeypatch.setattr(batches_module, "club_transport", _no_transport)
        batch = email_batch_service.create_batch(club, _request(_players(fake_db, club, 1)), locale="en")

        result = await email_batch_service.process_batch(club, batch.id)
        assert result.status == BatchStatus.failed
        row = fake_db.rows("email_batches")[0]
        assert row["status"] == "failed"
        assert row["error"] == "Email sending is not configured for this club"

    async def test_failed_recipient_and_retry(self, fake_db, club, fake_transport):
        players = _players(fake_db, club, 2)
        fake_transport.fail_for.add(players[1]["tutor_email"])
        batch = email_batch_service.create_batch(club, _request(players))

        result = await email_batch_service.process_batch(club, batch.id)
        assert result.status == BatchStatus.completed
        assert len(result.errors) == 1
        # no token left for the failed recipient
        assert [t["member_id"] for t in fake_db.rows("data_update_tokens")] == [players[0]["id"]]

        fake_transport.fail_for.clear()
        retried = await email_batch_service.retry_batch(club, batch.id)
        assert retried.processed_count == 1
        response = email_batch_service.to_response(fake_db.rows("email_batches")[0])
        assert response.sent == 2
        assert response.failed == 0

    async def test_transport_crash_is_per_recipient(self, fake_db, club, fake_transport):
        """An unexpected send error fails that recipient only"""
        players = _players(fake_db, club, 3)
        fake_transport.crash_for.add(players[1]["tutor_email"])
        batch = email_batch_service.create_batch(club, _request(players))

        result = await email_batch_service.process_batch(club, batch.id)

        assert result.status == BatchStatus.completed
        assert result.processed_count == 2
        statuses = [r["status"] for r in fake_db.rows("email_batches")[0]["recipients"]]
        assert statuses == ["sent", "failed", "sent"]

    async def test_storage_error_does_not_leave_processing(self, fake_db, club, fake_transport):
        players = _players(fake_db, club, 1)
        batch = email_batch_service.create_batch(club, _request(players))
        fake_db.fail_tables["club_settings"] = "update"

        with pytest.raises(RuntimeError):
            await email_batch_service.process_batch(club, batch.id)

        row = fake_db.rows("email_batches")[0]
        assert row["status"] == "failed"
        assert "club_settings update failed" in row["error"]
        # the delivered recipient is not sent again on retry
        assert row["recipients"][0]["status"] == "sent"

    async def test_everyone_failed(self, fake_db, club, fake_transport):
        players = _players(fake_db, club, 1)
        fake_transport.fail_for.add(players[0]["tutor_email"])
        batch = email_batch_service.create_batch(club, _request(players))

        result = await email_batch_service.process_batch(club, batch.id)
        assert result.status == BatchStatus.failed
        assert fake_db.rows("email_batches")[0]["error"]

    async def test_retry_without_failures(self, fake_db, club, fake_transport):
        batch = email_batch_service.create_batch(club, _request(_players(fake_db, club, 1)))
        await email_batch_service.process_batch(club, batch.id)

        with pytest.raises(InvalidRequestError) as exc:
            await email_batch_service.retry_batch(club, batch.id)
        assert exc.value.key == "batch.no_failed"

    async def test_custom_subject_and_field_config(self, fake_db, club, fake_transport):
        players = _players(fake_db, club, 1)
        request = _request(
            players,
            subject="Datos de [Nombre del Miembro]",
            body='Revisa: <a href="[updateLink]">enlace</a>',
            field_config={"iban": FieldConfig(label="IBAN"), "dni": FieldConfig(permission="readonly")},
        )
        batch = email_batch_service.create_batch(club, request)
        await email_batch_service.process_batch(club, batch.id)

        assert fake_transport.sent[0].subject == "Datos de Jugador0"
        token = fake_db.rows("data_update_tokens")[0]
        assert fake_transport.sent[0].html == f'Revisa: <a href="{update_link(token["id"])}">enlace</a>'
        assert set(token["field_config"]) == {"iban", "dni"}

    async def test_process_all_pending(self, fake_db, club, fake_transport):
        """Every club's pending batches are dispatched"""
        fake_db.add("clubs", id=OTHER_CLUB_ID, name="CB Otro")
        email_batch_service.create_batch(club, _request(_players(fake_db, club, 2)))
        email_batch_service.create_batch(OTHER_CLUB_ID, _request(_players(fake_db, OTHER_CLUB_ID, 1)))

        summary = await email_batch_service.process_all_pending()

        assert summary["clubs"] == 2
        assert summary["batches"] == 2
        assert summary["emails_sent"] == 3
        assert summary["errors"] == []
        assert {r["status"] for r in fake_db.rows("email_batches")} == {"completed"}
