"""
OTR indication message parser.

The OTR indication form stores a single free-text message laid out as
Portuguese section headers followed by "- Label: value" lines:

    INDICADOR:
    - Nome: Maria
    - Empresa: Acme
    FONTE INDICADA:
    - Tipo: Mineradora
    DETALHES ADICIONAIS:
    free text...

parse_otr_message() never raises. Missing or malformed fields come back as
empty strings; the result is only used for display and reporting.
"""
from dataclasses import dataclass, asdict, fields
from typing import Dict, Optional


INDICATOR_HEADER = 'INDICADOR:'
SOURCE_HEADER = 'FONTE INDICADA:'
DETAILS_HEADER = 'DETALHES ADICIONAIS:'

INDICATOR_PREFIXES = [
    ('- Nome:', 'indicator_name'),
    ('- Empresa:', 'indicator_company'),
    ('- Email:', 'indicator_email'),
    ('- Telefone:', 'indicator_phone'),
    ('- WhatsApp:', 'indicator_whatsapp'),
]

SOURCE_PREFIXES = [
    ('- Nome do Contato:', 'source_name'),
    ('- Empresa Geradora:', 'source_company'),
    ('- Tipo:', 'source_type'),
    ('- Localização:', 'location'),
    ('- Volume Anual Estimado:', 'volume'),
    ('- Medidas dos Pneus:', 'tire_sizes'),
]

_SECTION_PREFIXES = {
    'indicator': INDICATOR_PREFIXES,
    'source': SOURCE_PREFIXES,
}


@dataclass
class ParsedOTRMessage:
    indicator_name: str = ''
    indicator_company: str = ''
    indicator_email: str = ''
    indicator_phone: str = ''
    indicator_whatsapp: str = ''
    source_name: str = ''
    source_company: str = ''
    source_type: str = ''
    location: str = ''
    volume: str = ''
    tire_sizes: str = ''
    details: str = ''

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


FIELD_NAMES = [f.name for f in fields(ParsedOTRMessage)]


def parse_otr_message(message: Optional[str]) -> ParsedOTRMessage:
    """Extract the indicator/source fields and the free-text details block."""
    data = ParsedOTRMessage()
    if not message:
        return data

    section = ''
    details = []

    for raw_line in message.split('\n'):
        if section == 'details':
            details.append(raw_line.rstrip('\r') + '\n')
            continue

        line = raw_line.strip()
        if INDICATOR_HEADER in line:
            section = 'indicator'
        elif SOURCE_HEADER in line:
            section = 'source'
        elif DETAILS_HEADER in line:
            section = 'details'
            continue

        for prefix, attr in _SECTION_PREFIXES.get(section, ()):
            if line.startswith(prefix):
                setattr(data, attr, line[len(prefix):].strip())
                break

    data.details = ''.join(details).strip()
    return data


def compose_otr_message(values: Dict[str, str]) -> str:
    """
    Build an OTR indication message from field values.

    Uses the same headers and prefixes parse_otr_message() reads, so
    parse_otr_message(compose_otr_message(d)) recovers d for single-line values.
    Empty fields are still written so the layout stays stable.
    """
    def _line(prefix, attr):
        value = ' '.join(str(values.get(attr) or '').split('\n')).strip()
        return f"{prefix} {value}".rstrip()

    lines = [INDICATOR_HEADER]
    lines.extend(_line(prefix, attr) for prefix, attr in INDICATOR_PREFIXES)
    lines.append('')
    lines.append(SOURCE_HEADER)
    lines.extend(_line(prefix, attr) for prefix, attr in SOURCE_PREFIXES)

    details = str(values.get('details') or '').strip()
    if details:
        lines.append('')
        lines.append(DETAILS_HEADER)
        lines.append(details)

    return '\n'.join(lines)
