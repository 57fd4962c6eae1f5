"""
Locale negotiation and message catalog

Spanish is the default locale; Catalan and English are also served.
"""
from typing import Optional

DEFAULT_LOCALE = "es"
SUPPORTED_LOCALES = ("es", "ca", "en")


MESSAGES = {
    "es": {
        # auth
        "auth.required": "Debes iniciar sesión",
        "auth.invalid_token": "Sesión no válida o caducada",
        "auth.invalid_credentials": "Email o contraseña incorrectos",
        "auth.email_in_use": "Este email ya está registrado",
        "auth.weak_password": "La contraseña debe tener al menos 6 caracteres",
        "auth.invalid_email": "El email no es válido",
        "auth.no_club": "Tu usuario no pertenece a ningún club",
        "auth.register_failed": "No se pudo crear el club: {error}",
        "auth.admin_required": "Se requieren permisos de administrador",
        "auth.staff_required": "Se requieren permisos de entrenador o administrador",
        "auth.cannot_change_self": "No puedes cambiar tu propio rol ni eliminar tu usuario",
        "auth.user_create_failed": "No se pudo crear la cuenta: {error}",
        # generic
        "errors.not_found": "{entity} no encontrado",
        "errors.required_fields": "Faltan campos obligatorios: {fields}",
        "errors.unexpected": "Ha ocurrido un error inesperado",
        "errors.storage": "No se pudo guardar el archivo: {error}",
        "errors.file_too_large": "El archivo supera el tamaño máximo de {max_mb}MB",
        "errors.file_empty": "El archivo está vacío",
        "errors.image_required": "El archivo debe ser una imagen",
        # mail
        "mail.not_configured": "El envío de emails no está configurado para este club",
        "mail.delivery_failed": "No se pudo enviar el email: {error}",
        "mail.no_recipients": "Selecciona al menos un destinatario con email",
        "mail.default_update_subject": "Actualización de datos para {club_name}",
        "mail.template_failed": "No se pudo generar la plantilla: {error}",
        "mail.template_not_configured": "La generación de plantillas no está configurada",
        "mail.default_update_body": "Hola [Nombre del Miembro],<br><br>{club_name} necesita que revises y actualices tus datos. Puedes hacerlo desde este enlace: <a href=\"[updateLink]\">[updateLink]</a><br><br>Gracias,<br>{club_name}",
        "files.request_subject": "Solicitud de documento: {title}",
        "files.request_body": "Hola {name},<br><br>{club_name} te solicita el siguiente documento: <strong>{title}</strong>.<br>{message}<br>Puedes subirlo desde este enlace: <a href=\"{link}\">{link}</a><br><br>Gracias,<br>{club_name}",
        # batches
        "batch.not_found": "Lote de envío no encontrado",
        "batch.none_pending": "No hay lotes pendientes",
        "batch.daily_limit": "Se ha alcanzado el límite diario de {limit} emails",
        "batch.no_failed": "El lote no tiene envíos fallidos",
        # tokens
        "token.invalid": "Token no válido o ya utilizado",
        "token.expired": "El enlace ha caducado",
        # settings
        "settings.sender_missing": "Primero indica una dirección de remitente",
        "schedules.general_locked": "El horario General no se puede eliminar",
        "settings.sender_verification_subject": "Confirma la dirección de remitente de {club_name}",
        "settings.sender_verification_body": "{club_name} quiere enviar emails como {email}. Confirma esta dirección desde este enlace: <a href=\"{link}\">{link}</a>",
        # registrations
        "forms.closed": "El formulario de inscripción está cerrado",
        "forms.full": "Se ha alcanzado el número máximo de inscripciones",
        "forms.invalid_submission": "Revisa los datos del formulario: {errors}",
        # importer
        "import.empty": "El archivo CSV está vacío",
        "import.bad_header": "Las columnas del CSV no coinciden. Esperadas: {expected}",
        "import.unknown_type": "Tipo de importación desconocido: {kind}",
        "import.invalid_row": "Fila {line} con datos no válidos: {fields}",
        # values
        "teams.none": "Sin equipo",
        "teams.invalid_age_range": "La edad mínima no puede ser mayor que la máxima",
        "dashboard.missing_data": "{count} miembros con datos incompletos",
        "dashboard.overdue_fees": "{count} jugadores con cuotas vencidas",
        "dashboard.mail_not_configured": "El envío de emails no está configurado",
    },
    "ca": {
        "auth.required": "Has d'iniciar sessió",
        "auth.invalid_token": "Sessió no vàlida o caducada",
        "auth.invalid_credentials": "Email o contrasenya incorrectes",
        "auth.email_in_use": "Aquest email ja està registrat",
        "auth.weak_password": "La contrasenya ha de tenir almenys 6 caràcters",
        "auth.invalid_email": "L'email no és vàlid",
        "auth.no_club": "El teu usuari no pertany a cap club",
        "auth.register_failed": "No s'ha pogut crear el club: {error}",
        "auth.admin_required": "Calen permisos d'administrador",
        "auth.staff_required": "Calen permisos d'entrenador o administrador",
        "auth.cannot_change_self": "No pots canviar el teu propi rol ni eliminar el teu usuari",
        "auth.user_create_failed": "No s'ha pogut crear el compte: {error}",
        "errors.not_found": "{entity} no trobat",
        "errors.required_fields": "Falten camps obligatoris: {fields}",
        "errors.unexpected": "S'ha produït un error inesperat",
        "errors.storage": "No s'ha pogut desar el fitxer: {error}",
        "errors.file_too_large": "El fitxer supera la mida màxima de {max_mb}MB",
        "errors.file_empty": "El fitxer és buit",
        "errors.image_required": "El fitxer ha de ser una imatge",
        "mail.not_configured": "L'enviament d'emails no està configurat per a aquest club",
        "mail.delivery_failed": "No s'ha pogut enviar l'email: {error}",
        "mail.no_recipients": "Selecciona almenys un destinatari amb email",
        "mail.default_update_subject": "Actualització de dades per a {club_name}",
        "mail.template_failed": "No s'ha pogut generar la plantilla: {error}",
        "mail.template_not_configured": "La generació de plantilles no està configurada",
        "mail.default_update_body": "Hola [Nombre del Miembro],<br><br>{club_name} necessita que revisis i actualitzis les teves dades. Pots fer-ho des d'aquest enllaç: <a href=\"[updateLink]\">[updateLink]</a><br><br>Gràcies,<br>{club_name}",
        "files.request_subject": "Sol·licitud de document: {title}",
        "files.request_body": "Hola {name},<br><br>{club_name} et sol·licita el document següent: <strong>{title}</strong>.<br>{message}<br>Pots pujar-lo des d'aquest enllaç: <a href=\"{link}\">{link}</a><br><br>Gràcies,<br>{club_name}",
        "batch.not_found": "Lot d'enviament no trobat",
        "batch.none_pending": "No hi ha lots pendents",
        "batch.daily_limit": "S'ha arribat al límit diari de {limit} emails",
        "batch.no_failed": "El lot no té enviaments fallits",
        "token.invalid": "Token no vàlid o ja utilitzat",
        "token.expired": "L'enllaç ha caducat",
        # settings
        "settings.sender_missing": "Primer indica una adreça de remitent",
        "schedules.general_locked": "L'horari General no es pot eliminar",
        "settings.sender_verification_subject": "Confirma l'adreça de remitent de {club_name}",
        "settings.sender_verification_body": "{club_name} vol enviar emails com a {email}. Confirma aquesta adreça des d'aquest enllaç: <a href=\"{link}\">{link}</a>",
        "forms.closed": "El formulari d'inscripció està tancat",
        "forms.full": "S'ha arribat al nombre màxim d'inscripcions",
        "forms.invalid_submission": "Revisa les dades del formulari: {errors}",
        "import.empty": "El fitxer CSV és buit",
        "import.bad_header": "Les columnes del CSV no coincideixen. Esperades: {expected}",
        "import.unknown_type": "Tipus d'importació desconegut: {kind}",
        "import.invalid_row": "Fila {line} amb dades no vàlides: {fields}",
        "teams.none": "Sense equip",
        "teams.invalid_age_range": "L'edat mínima no pot ser més gran que la màxima",
        "dashboard.missing_data": "{count} membres amb dades incompletes",
        "dashboard.overdue_fees": "{count} jugadors amb quotes vençudes",
        "dashboard.mail_not_configured": "L'enviament de correus no està configurat",
    },
    "en": {
        "auth.required": "You must sign in",
        "auth.invalid_token": "Invalid or expired session",
        "auth.invalid_credentials": "Wrong email or password",
        "auth.email_in_use": "This email is already registered",
        "auth.weak_password": "Password must be at least 6 characters long",
        "auth.invalid_email": "Invalid email address",
        "auth.no_club": "Your user does not belong to any club",
        "auth.register_failed": "Could not create the club: {error}",
        "auth.admin_required": "Administrator permissions required",
        "auth.staff_required": "Coach or administrator permissions required",
        "auth.cannot_change_self": "You cannot change your own role or delete your own user",
        "auth.user_create_failed": "Could not create the account: {error}",
        "errors.not_found": "{entity} not found",
        "errors.required_fields": "Missing required fields: {fields}",
        "errors.unexpected": "An unexpected error occurred",
        "errors.storage": "Could not store the file: {error}",
        "errors.file_too_large": "File exceeds the maximum size of {max_mb}MB",
        "errors.file_empty": "The file is empty",
        "errors.image_required": "The file must be an image",
        "mail.not_configured": "Email sending is not configured for this club",
        "mail.delivery_failed": "Could not send the email: {error}",
        "mail.no_recipients": "Select at least one recipient with an email address",
        "mail.default_update_subject": "Data update for {club_name}",
        "mail.template_failed": "Could not generate the template: {error}",
        "mail.template_not_configured": "Template generation is not configured",
        "mail.default_update_body": "Hello [Nombre del Miembro],<br><br>{club_name} asks you to review and update your details. You can do it from this link: <a href=\"[updateLink]\">[updateLink]</a><br><br>Thanks,<br>{club_name}",
        "files.request_subject": "Document request: {title}",
        "files.request_body": "Hello {name},<br><br>{club_name} requests the following document: <strong>{title}</strong>.<br>{message}<br>You can upload it from this link: <a href=\"{link}\">{link}</a><br><br>Thanks,<br>{club_name}",
        "batch.not_found": "Email batch not found",
        "batch.none_pending": "There are no pending batches",
        "batch.daily_limit": "The daily limit of {limit} emails has been reached",
        "batch.no_failed": "The batch has no failed deliveries",
        "token.invalid": "Invalid or already used token",
        "token.expired": "The link has expired",
        # settings
        "settings.sender_missing": "Set a sender address first",
        "schedules.general_locked": "The General schedule cannot be deleted",
        "settings.sender_verification_subject": "Confirm the sender address of {club_name}",
        "settings.sender_verification_body": "{club_name} wants to send emails as {email}. Confirm this address from this link: <a href=\"{link}\">{link}</a>",
        "forms.closed": "The registration form is closed",
        "forms.full": "The maximum number of registrations has been reached",
        "forms.invalid_submission": "Please check the form data: {errors}",
        "import.empty": "The CSV file is empty",
        "import.bad_header": "CSV columns do not match. Expected: {expected}",
        "import.unknown_type": "Unknown import type: {kind}",
        "import.invalid_row": "Row {line} has invalid data: {fields}",
        "teams.none": "No team",
        "teams.invalid_age_range": "Minimum age cannot be greater than maximum age",
        "dashboard.missing_data": "{count} members with incomplete data",
        "dashboard.overdue_fees": "{count} players with overdue fees",
        "dashboard.mail_not_configured": "Email sending is not configured",
    },
}


def negotiate_locale(accept_language: Optional[str], explicit: Optional[str] = None) -> str:
    """
    Pick the response locale.

    An explicit ``lang`` value wins when supported, then the first supported
    primary tag of the Accept-Language header in the order given.
    """
    if explicit:
        tag = explicit.strip().lower().split("-")[0]
        if tag in SUPPORTED_LOCALES:
            return tag

    if accept_language:
        for part in accept_language.split(","):
            tag = part.split(";")[0].strip().lower().split("-")[0]
            if tag in SUPPORTED_LOCALES:
                return tag

    return DEFAULT_LOCALE


def translate(key: str, locale: str = DEFAULT_LOCALE, **params) -> str:
    """Message for key, falling back to Spanish and then to the key itself"""
    catalog = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE].get(key) or key
    try:
        return template.format(**params)
    except (KeyError, IndexError):
        return template
