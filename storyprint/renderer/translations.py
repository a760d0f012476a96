# Localized labels for the printed book's front matter.

from datetime import date, datetime
from typing import Dict, Optional, Union

PRINT_TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "titleLabel": "Title",
        "authorLabel": "Author",
        "publishDateLabel": "Publish Date",
        "editingCompanyLabel": "Editing Company",
        "websiteLabel": "Website",
        "copyrightLabel": "Copyright",
        "copyrightText": (
            "All rights reserved. No part of this publication may be reproduced, distributed, or "
            "transmitted in any form or by any means without the prior written permission of the author."
        ),
        "promotionText": "Create your own story on <strong>{publisher}</strong>",
        "synopsisTitle": "Synopsis",
        "tocTitle": "Table of Contents",
        "chapterLabel": "Chapter",
    },
    "pt-PT": {
        "titleLabel": "Título",
        "authorLabel": "Autor",
        "publishDateLabel": "Data de Publicação",
        "editingCompanyLabel": "Empresa de Edição",
        "websiteLabel": "Website",
        "copyrightLabel": "Direitos Autorais",
        "copyrightText": (
            "Todos os direitos reservados. Nenhuma parte desta publicação pode ser reproduzida, "
            "distribuída ou transmitida de qualquer forma ou por qualquer meio sem a permissão "
            "prévia por escrito do autor."
        ),
        "promotionText": "Crie a sua própria história no <strong>{publisher}</strong>",
        "synopsisTitle": "Sinopse",
        "tocTitle": "Índice",
        "chapterLabel": "Capítulo",
    },
}

MONTHS = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "pt-PT": [
        "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
        "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
    ],
}


def _language_key(story_language: Optional[str]) -> str:
    return "pt-PT" if story_language == "pt-PT" else "en"


def get_print_translations(story_language: Optional[str]) -> Dict[str, str]:
    return dict(PRINT_TRANSLATIONS[_language_key(story_language)])


def format_publish_date(created_at: Union[str, date, datetime, None], story_language: Optional[str]) -> str:
    """'<Month> <YYYY>' in the story language, or '' when the date cannot be read."""
    if created_at is None:
        return ""
    if isinstance(created_at, (date, datetime)):
        value = created_at
    else:
        try:
            value = datetime.fromisoformat(str(created_at).replace("Z", "+00:00"))
        except ValueError:
            return ""
    return f"{MONTHS[_language_key(story_language)][value.month - 1]} {value.year}"
