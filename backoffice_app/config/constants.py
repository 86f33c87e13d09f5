# backoffice_app/config/constants.py

# Constantes para o Nome de Usuário (Username)
USERNAME_LENGTH_MIN = 4
USERNAME_LENGTH_MAX = 12

# Constantes para a Senha
PASSWORD_LENGTH_MIN = 6
PASSWORD_LENGTH_MAX = 20
# Limite do bcrypt, em bytes UTF-8
PASSWORD_BYTES_MAX = 72

# Constantes para o Apelido (Nickname)
NICKNAME_LENGTH_MIN = 2
NICKNAME_LENGTH_MAX = 20

# Constantes para Código de Verificação (2FA)
VERIFICATION_CODE_LENGTH_MAX = 8

# Duração fixa da sessão: exp = iat + 24h
SESSION_TOKEN_TTL_SECONDS = 24 * 60 * 60

# Discriminador de sessão administrativa (separa de sessões de usuário final)
SESSION_SUBJECT_KIND = 'admin'

# Paginação padrão dos logs de auditoria
ADMIN_LOGS_PAGE_SIZE = 50

# Declaração da URL de Obtenção do Token
OAUTH2_SCHEME_TOKEN_URL = '/api/admin/login'
