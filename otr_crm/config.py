"""
Centralized configuration — env vars, status labels, webhook events.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
CHANGES_CHANNEL = os.getenv('CHANGES_CHANNEL', 'store-changes')

# ── Hosted Postgres ──────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Hosted functions ─────────────────────────────────────────────────────────
SUPABASE_URL = os.getenv('SUPABASE_URL')
SUPABASE_SERVICE_KEY = os.getenv('SUPABASE_SERVICE_KEY')
FUNCTIONS_TIMEOUT = int(os.getenv('FUNCTIONS_TIMEOUT', '15'))

# ── Cloudflare R2 (report archive) ───────────────────────────────────────────
R2_ACCESS_KEY_ID = os.getenv('R2_ACCESS_KEY_ID')
R2_SECRET_ACCESS_KEY = os.getenv('R2_SECRET_ACCESS_KEY')
R2_BUCKET_NAME = os.getenv('R2_BUCKET_NAME')
R2_ENDPOINT_URL = os.getenv('R2_ENDPOINT_URL')
R2_PUBLIC_URL = os.getenv('R2_PUBLIC_URL')

# ── Auth ─────────────────────────────────────────────────────────────────────
DASHBOARD_PASSWORD = os.getenv('DASHBOARD_PASSWORD')
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')

# ── Leads ────────────────────────────────────────────────────────────────────
OTR_CHANNEL = 'otr-source-indication'
DEFAULT_CHANNEL = 'general'
DEFAULT_STATUS = 'pending'
COMPANY_NAME = 'ELP Green Technology'

STATUS_LABELS = {
    'pending':     'Pendente',
    'approved':    'Aprovado',
    'contacted':   'Contatado',
    'negotiating': 'Negociando',
    'converted':   'Convertido',
    'rejected':    'Rejeitado',
}

# Plural labels used on charts and report summaries
STATUS_PLURAL_LABELS = {
    'pending':     'Pendentes',
    'approved':    'Aprovados',
    'contacted':   'Contatados',
    'negotiating': 'Negociando',
    'converted':   'Convertidos',
    'rejected':    'Rejeitados',
}

NOTE_TYPES = ['note', 'status_change', 'email_sent', 'call', 'meeting']

# Status → outbound webhook event
WEBHOOK_EVENTS = {
    'approved':  'lead_approved',
    'converted': 'lead_converted',
    'rejected':  'lead_rejected',
}

WEBHOOK_TYPES = ['slack', 'teams', 'discord']
DEFAULT_WEBHOOK_EVENTS = ['lead_approved', 'lead_converted']

# ── Marketplace / CRM pipeline ───────────────────────────────────────────────
MARKETPLACE_CHANNEL = 'marketplace'

MARKETPLACE_COMPANY_TYPES = ['buyer', 'seller', 'both']
MARKETPLACE_PRODUCTS = [
    'rcb',
    'pyrolytic-oil',
    'steel-wire',
    'rubber-blocks',
    'rubber-granules',
    'reclaimed-rubber',
]

# Stage order is the board's column order
PIPELINE_STAGES = {
    'initial':   'Inicial',
    'qualified': 'Qualificado',
    'project':   'Projeto',
}
DEFAULT_STAGE = 'initial'

PRIORITIES = ['low', 'medium', 'high', 'urgent']
DEFAULT_PRIORITY = 'medium'

LEAD_TYPES = ['contact', 'otr', 'marketplace']

# Days ahead that a follow-up counts as "soon"
REMINDER_SOON_DAYS = 3
