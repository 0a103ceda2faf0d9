"""Константы приложения."""

from typing import Final, Tuple

# ===== HTTP STATUS CODES =====
HTTP_OK: Final[int] = 200
HTTP_CREATED: Final[int] = 201
HTTP_NO_CONTENT: Final[int] = 204
HTTP_BAD_REQUEST: Final[int] = 400
HTTP_UNAUTHORIZED: Final[int] = 401
HTTP_FORBIDDEN: Final[int] = 403
HTTP_NOT_FOUND: Final[int] = 404
HTTP_CONFLICT: Final[int] = 409
HTTP_UNPROCESSABLE_ENTITY: Final[int] = 422
HTTP_TOO_MANY_REQUESTS: Final[int] = 429
HTTP_INTERNAL_SERVER_ERROR: Final[int] = 500

# ===== ENDPOINTS =====
ENDPOINT_AUTH_LOGIN: Final[str] = "/auth/login"
ENDPOINT_AUTH_REFRESH: Final[str] = "/auth/refresh"
ENDPOINT_AUTH_LOGOUT: Final[str] = "/auth/logout"
ENDPOINT_AUTH_PROFILE: Final[str] = "/auth/profile"
ENDPOINT_AUTH_CHANGE_PASSWORD: Final[str] = "/auth/change-password"

# Маршруты, на которые никогда не отправляется access token
PUBLIC_ROUTES: Final[Tuple[str, ...]] = (
    ENDPOINT_AUTH_LOGIN,
    ENDPOINT_AUTH_REFRESH,
    ENDPOINT_AUTH_LOGOUT,
)

# ===== STORAGE KEYS =====
# Ключи без префикса, префикс берется из настроек (admin_ по умолчанию)
STORAGE_KEY_ACCESS_TOKEN: Final[str] = "token"
STORAGE_KEY_REFRESH_TOKEN: Final[str] = "refresh_token"
STORAGE_KEY_USER: Final[str] = "user"
STORAGE_KEY_BLOCKED_REASON: Final[str] = "blocked_reason"

# ===== SESSION STATE KEYS =====
SESSION_CREDENTIALS: Final[str] = "credentials"
SESSION_PENDING_REDIRECT: Final[str] = "pending_redirect"
SESSION_CLIENT_ID: Final[str] = "client_id"

# ===== BROWSER COOKIE =====
# Идентификатор браузера, по нему выбирается файл сессии на сервере
CLIENT_ID_COOKIE: Final[str] = "flitcar_admin_client"
CLIENT_ID_COOKIE_MAX_AGE: Final[int] = 30 * 24 * 60 * 60

# ===== TERMINATION REASONS =====
REASON_NO_REFRESH_TOKEN: Final[str] = "no_refresh_token"
REASON_RETRY_REJECTED: Final[str] = "retry_rejected"
REASON_REFRESH_FAILED: Final[str] = "refresh_failed"
REASON_ACCOUNT_BLOCKED: Final[str] = "account_blocked"

# ===== TIMEOUTS =====
DEFAULT_API_TIMEOUT: Final[float] = 30.0

# ===== PAGES =====
PAGE_LOGIN: Final[str] = "pages/1_login.py"
PAGE_ACCOUNT: Final[str] = "pages/2_account.py"

# ===== UI MESSAGES =====
MSG_SESSION_EXPIRED: Final[str] = "Session expirée. Veuillez vous reconnecter."
MSG_FORBIDDEN: Final[str] = "Accès refusé. Permissions insuffisantes."
MSG_SERVER_ERROR: Final[str] = "Erreur serveur. Veuillez réessayer plus tard."
MSG_ACCOUNT_BLOCKED: Final[str] = "Votre compte a été bloqué"
MSG_LOGIN_SUCCESS: Final[str] = "Bienvenue {name}!"
MSG_LOGIN_ERROR: Final[str] = "Erreur de connexion"
MSG_EMPTY_FIELDS: Final[str] = "Veuillez remplir tous les champs"
MSG_PROFILE_UPDATED: Final[str] = "Profil mis à jour"
MSG_PASSWORD_CHANGED: Final[str] = "Mot de passe modifié"
MSG_PASSWORDS_MISMATCH: Final[str] = "Les mots de passe ne correspondent pas"
MSG_PROFILE_INVALID: Final[str] = "Réponse du serveur invalide pour le profil"
MSG_LOGGED_OUT: Final[str] = "Vous êtes déconnecté"
