"""
Club Settings Tests
"""
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.club.errors import InvalidRequestError, InvalidTokenError, MailDeliveryError, NotFoundError
from app.club.models import (
    CustomFieldCreate,
    EssentialDocsUpdate,
    GeneralSettingsUpdate,
    MailSettingsUpdate,
)
from app.club.settings import (
    default_settings,
    foreground_for,
    hex_luminance,
    settings_service,
)


class TestTheme:
    """Theme colour helpers"""

    def test_luminance(self):
        assert hex_luminance("#ffffff") == pytest.approx(1.0)
        assert hex_luminance("#000000") == 0.0
        assert hex_luminance("nope") == 0.0

    def test_foreground(self):
        assert foreground_for("#ffffff") == "#000000"
        assert foreground_for("#1e3a8a") == "#ffffff"
        assert foreground_for("#facc15") == "#000000"

    def test_default_settings(self):
        settings = default_settings("#FACC15")
        assert settings["theme_color"] == "#facc15"
        assert settings["theme_color_foreground"] == "#000000"
        assert settings["custom_fields"] == []
        assert settings["default_locale"] == "es"


class TestGeneralSettings:

    def test_get_creates_missing_row(self, fake_db):
        fake_db.add("clubs", id="c9", name="Nuevo")
        response = settings_service.get_response("c9")
        assert response.club_name == "Nuevo"
        assert len(fake_db.rows("club_settings")) == 1

    def test_unknown_club(self, fake_db):
        with pytest.raises(NotFoundError):
            settings_service.get_response("missing")

    def test_update_name_and_theme(self, fake_db, club):
        """Theme colour updates also refresh the foreground"""
        response = settings_service.update_general(
            club, GeneralSettingsUpdate(club_name="CF Nou", theme_color="FFFFFF")
        )
        assert response.club_name == "CF Nou"
        assert response.theme_color == "#ffffff"
        assert response.theme_color_foreground == "#000000"
        assert fake_db.rows("clubs")[0]["name"] == "CF Nou"


class TestMailSettings:

    def test_secrets_reduced_to_flags(self, fake_db, smtp_club):
        response = settings_service.get_response(smtp_club)
        assert response.smtp_configured is True
        assert response.sendpulse_configured is False
        assert "smtp_password" not in response.model_dump()

    def test_blank_secret_keeps_stored_value(self, fake_db, smtp_club):
        settings_service.update_mail(smtp_club, MailSettingsUpdate(smtp_host="mail.demo.es", smtp_password=""))
        row = fake_db.rows("club_settings")[0]
        assert row["smtp_host"] == "mail.demo.es"
        assert row["smtp_password"] == "secret"

    def test_new_sender_needs_verification(self, fake_db, club):
        """A changed sender address is unverified again"""
        response = settings_service.update_mail(club, MailSettingsUpdate(from_email="hola@demo.es"))
        assert response.sender_verification_status == "unverified"

        settings_service.update_settings(club, {"sender_verification_status": "verified"})
        response = settings_service.update_mail(club, MailSettingsUpdate(from_email="hola@demo.es"))
        assert response.sender_verification_status == "verified"

        response = settings_service.update_mail(club, MailSettingsUpdate(from_email="otro@demo.es"))
        assert response.sender_verification_status == "unverified"


@pytest.mark.asyncio
class TestSenderVerification:
    """Sender address confirmed through an emailed link"""

    async def test_link_sent_then_confirmed(self, fake_db, club, fake_transport):
        settings_service.update_mail(club, MailSettingsUpdate(from_email="hola@demo.es"))

        response = await settings_service.request_sender_verification(club, "en")

        assert response.sender_verification_status == "pending"
        token = fake_db.rows("club_settings")[0]["sender_verification_token"]
        mail = fake_transport.sent[0]
        assert mail.to == "hola@demo.es"
        assert mail.subject == "Confirm the sender address of CF Demo"
        assert f"/verify-sender?token={token}" in mail.html

        settings_service.confirm_sender(token)
        row = fake_db.rows("club_settings")[0]
        assert row["sender_verification_status"] == "verified"
        assert row["sender_verification_token"] is None

        with pytest.raises(InvalidTokenError):
            settings_service.confirm_sender(token)

    async def test_sender_address_required(self, fake_db, club, fake_transport):
        with pytest.raises(InvalidRequestError) as exc:
            await settings_service.request_sender_verification(club)
        assert exc.value.key == "settings.sender_missing"
        assert fake_transport.sent == []

    async def test_undelivered_link_keeps_status(self, fake_db, club, fake_transport):
        settings_service.update_mail(club, MailSettingsUpdate(from_email="hola@demo.es"))
        fake_transport.fail_for.add("hola@demo.es")

        with pytest.raises(MailDeliveryError):
            await settings_service.request_sender_verification(club)

        row = fake_db.rows("club_settings")[0]
        assert row["sender_verification_status"] == "unverified"
        assert row.get("sender_verification_token") is None

    async def test_changed_address_invalidates_link(self, fake_db, club, fake_transport):
        settings_service.update_mail(club, MailSettingsUpdate(from_email="hola@demo.es"))
        await settings_service.request_sender_verification(club)
        token = fake_db.rows("club_settings")[0]["sender_verification_token"]

        settings_service.update_mail(club, MailSettingsUpdate(from_email="otro@demo.es"))

        with pytest.raises(InvalidTokenError):
            settings_service.confirm_sender(token)

        response = settings_service.update_mail(club, MailSettingsUpdate(from_email="hola@demo.es"))
        assert response.sender_verification_status == "verified"


class TestCustomFieldsAndDocs:

    def test_add_and_remove_custom_field(self, fake_db, club):
        fields = settings_service.add_custom_field(
            club, CustomFieldCreate(label="Talla", type="select", options=[" S ", "M", ""])
        )
        assert len(fields) == 1
        assert fields[0].id.startswith("custom_")
        assert fields[0].options == ["S", "M"]

        assert settings_service.remove_custom_field(club, fields[0].id) == []
        with pytest.raises(NotFoundError):
            settings_service.remove_custom_field(club, fields[0].id)

    def test_essential_docs(self, fake_db, club):
        update = EssentialDocsUpdate(essential_docs=["DNI", " DNI ", "Certificado médico"])
        assert settings_service.set_essential_docs(club, update.essential_docs) == ["DNI", "Certificado médico"]
        assert settings_service.get_response(club).essential_docs == ["DNI", "Certificado médico"]


@pytest.mark.asyncio
class TestLogo:

    async def test_upload_replaces_previous(self, fake_db, club):
        upload = UploadFile(file=io.BytesIO(b"\x89PNG"), filename="logo.png",
                            headers=Headers({"content-type": "image/png"}))
        response = await settings_service.upload_logo(club, upload)
        first_path = fake_db.rows("clubs")[0]["logo_path"]
        assert response.logo_url.endswith(first_path)

        upload = UploadFile(file=io.BytesIO(b"\x89PNG2"), filename="logo2.png",
                            headers=Headers({"content-type": "image/png"}))
        await settings_service.upload_logo(club, upload)
        assert first_path in fake_db.storage.removed

    async def test_logo_must_be_image(self, fake_db, club):
        upload = UploadFile(file=io.BytesIO(b"%PDF"), filename="logo.pdf",
                            headers=Headers({"content-type": "application/pdf"}))
        with pytest.raises(InvalidRequestError) as exc:
            await settings_service.upload_logo(club, upload)
        assert exc.value.key == "errors.image_required"
