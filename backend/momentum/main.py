from flask import Blueprint, current_app, jsonify, render_template, request

main = Blueprint('main', __name__)


def socket_url(host: str, port: int, namespace: str = '/ws') -> str:
    """URL the page's Socket.IO client connects to."""
    if not host:
        return namespace
    if '://' in host:
        return host.rstrip('/') + namespace
    # Scheme-relative so the page's http/https carries over
    return f"//{host}:{port}{namespace}"


@main.route('/')
def index():
    core = current_app.extensions['momentum']
    session_id, session = core.resolve_session(request.args.get('id'))
    current_app.logger.info(f"[page] id={session_id} session_count={core.store.count()}")
    return render_template(
        'index.html',
        socket_url=socket_url(current_app.config['PUBLIC_HOST'], current_app.config['PORT']),
        session_id=session_id,
        state=session.to_dict(),
    )


@main.route('/health')
def health():
    return jsonify({'status': 'ok'})
