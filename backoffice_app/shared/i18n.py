# caminho: backoffice_app/shared/i18n.py
# Funções:
# - get_translator(): devolve função de tradução das mensagens exibidas ao usuário
# - get_default_translator(): tradutor do idioma padrão

import json
from pathlib import Path

# Define o caminho base para os arquivos de tradução
LOCALES_PATH = Path(__file__).parent / "localization"
# Dicionário para armazenar as traduções carregadas
_TRANSLATIONS = {}
# Idioma padrão
DEFAULT_LOCALE = "en"


def load_translations():
    """Carrega todos os arquivos JSON de tradução para a memória."""
    for file_path in LOCALES_PATH.glob("*.json"):
        locale_name = file_path.stem  # Nome do arquivo sem extensão (ex: 'en', 'zh_cn')
        with open(file_path, 'r', encoding='utf-8') as f:
            _TRANSLATIONS[locale_name] = json.load(f)


def get_translator(locale: str | None):
    """
    Retorna a função de tradução para a localidade especificada.
    Se o locale não for encontrado, tenta só o idioma ('pt' de 'pt_br') e depois o padrão.
    """
    if not _TRANSLATIONS:
        load_translations()

    key = (locale or DEFAULT_LOCALE).lower()
    translation_dict = (
        _TRANSLATIONS.get(key)
        or _TRANSLATIONS.get(key.split('_')[0])
        or _TRANSLATIONS.get(DEFAULT_LOCALE, {})
    )

    def translate(key: str, **kwargs) -> str:
        """Tenta traduzir usando a chave; se não encontrar, retorna a própria chave."""
        message = translation_dict.get(key, key)
        try:
            return message.format(**kwargs)
        except (KeyError, IndexError):
            return message

    return translate


def get_default_translator():
    """Retorna o tradutor configurado para o idioma padrão (DEFAULT_LOCALE)."""
    return get_translator(DEFAULT_LOCALE)
