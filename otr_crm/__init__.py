"""
Flask application factory.

Creates and configures the app, registers all blueprints.
"""
from flask import Flask, request, session, redirect, render_template_string


LOGIN_PAGE = '''
<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Login — ELP Green Technology</title>
    <style>body { font-family: sans-serif; background:#eef3ef; }</style>
</head>
<body style="min-height:100vh;display:flex;align-items:center;justify-content:center;">
    <div style="background:white;border-radius:12px;box-shadow:0 2px 8px rgba(0,0,0,0.06);padding:2.5rem;width:100%;max-width:360px;">
        <h1 style="color:#065f46;font-size:1.1rem;">OTR Lead Back Office</h1>
        {% if error %}
        <p style="color:#ef4444;font-size:0.8rem;">Senha incorreta</p>
        {% endif %}
        <form method="POST" action="/login">
            <input type="email" name="email" placeholder="Email" style="width:100%;margin-bottom:0.75rem;">
            <input type="password" name="password" autofocus placeholder="Senha" style="width:100%;margin-bottom:1rem;">
            <button type="submit" style="width:100%;background:#065f46;color:white;">Entrar</button>
        </form>
    </div>
</body>
</html>
'''

OPEN_PATHS = {
    '/health', '/login', '/api/contact', '/api/otr/indications', '/api/newsletter', '/api/marketplace',
}


def create_app():
    """Create and configure the Flask application."""
    from otr_crm.config import DASHBOARD_PASSWORD, SECRET_KEY
    from otr_crm.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    app.secret_key = SECRET_KEY

    # ── Simple password auth ────────────────────────────────────────────
    @app.before_request
    def require_login():
        if not DASHBOARD_PASSWORD:
            return  # No password set: open access (local dev)
        if request.path in OPEN_PATHS:
            return
        if session.get('authenticated'):
            return
        if request.path.startswith('/api/'):
            return {'error': 'Authentication required'}, 401
        return redirect('/login')

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        if request.method == 'POST':
            if request.form.get('password') == DASHBOARD_PASSWORD:
                session['authenticated'] = True
                session['user_email'] = request.form.get('email') or None
                return redirect('/api/otr/leads')
            return render_template_string(LOGIN_PAGE, error=True)
        return render_template_string(LOGIN_PAGE, error=False)

    @app.route('/logout')
    def logout():
        session.clear()
        return redirect('/login')

    from otr_crm.routes.public import bp as public_bp
    from otr_crm.routes.leads import bp as leads_bp
    from otr_crm.routes.settings import bp as settings_bp
    from otr_crm.routes.crm import bp as crm_bp

    app.register_blueprint(public_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(crm_bp)

    # Import models so Base.metadata knows about them.
    # Schema is managed by Alembic, no create_all() call.
    import importlib
    importlib.import_module('otr_crm.models.contact')
    importlib.import_module('otr_crm.models.lead_note')
    importlib.import_module('otr_crm.models.conversion_goal')
    importlib.import_module('otr_crm.models.notification_webhook')
    importlib.import_module('otr_crm.models.newsletter_subscriber')
    importlib.import_module('otr_crm.models.marketplace_registration')

    return app
