# certidoes.py
"""Fixed catalogue shared by the form and the relay."""
from enum import Enum

# ─── Envelope ────────────────────────────────────────────────────────────
ENVELOPE_KEY = "certidao"


class CertidaoType(str, Enum):
    FEDERAL = "Certidão Federal"
    ESTADUAL = "Certidão Estadual"
    MUNICIPAL = "Certidão Municipal"
    TRABALHISTA = "Certidão Trabalhista"
    OUTRO = "Outro"


# ─── Companies ───────────────────────────────────────────────────────────
COMPANY_CNPJ_MAP = {
    "AVA RJ":             "17.336.663/0001-84",
    "AVA SP":             "11.880.018/0001-41",
    "AVA SP - GUARULHOS": "11.880.018/0002-22",
    "BURN":               "11.636.336/0001-61",
    "LIMPPANO":           "33.033.556/0001-33",
    "LIMPPANO - RS":      "33.033.556/0007-29",
    "LIMPPANO - TÊXTIL":  "33.033.556/0006-48",
    "VAN":                "19.047.654/0001-07",
}
COMPANIES = list(COMPANY_CNPJ_MAP)

# ─── User-facing messages ────────────────────────────────────────────────
MSG_EMAIL_LIMIT     = "Limite de 5 emails atingido."
MSG_EMAIL_INVALID   = "Formato de email inválido."
MSG_EMAIL_DUPLICATE = "Este email já foi adicionado."
MSG_SUCCESS         = "Certidão cadastrada com sucesso!"
MSG_UNREACHABLE     = "Falha ao conectar com o servidor. Tente novamente."
MSG_INVALID_JSON    = "Resposta da API não é JSON válido."
MSG_UNKNOWN_ERROR   = "Erro desconhecido ao salvar."

# relay
MSG_METHOD_NOT_ALLOWED = "Method not allowed"
MSG_MISSING_ENVELOPE   = "Payload sem certidao"


def cnpj_for(company):
    """CNPJ registered for a company, or "" when it is not in the catalogue."""
    return COMPANY_CNPJ_MAP.get(company, "")
