from flask import Blueprint, current_app, jsonify, request

from momentum.errors import InternalError, NotFoundError, ValidationError

sessions = Blueprint('sessions', __name__)


def _core():
    return current_app.extensions['momentum']


@sessions.route('/momentum', methods=['POST'])
def post_momentum():
    core = _core()
    try:
        body = request.get_json(force=True)
        core.logger.info(f"[momentum-in] body={body}")
        payload = core.apply_momentum(
            body.get('sessionId'), body.get('isPlayer'), body.get('isSet'), body.get('momentum'))
        return jsonify(payload)
    except (ValidationError, NotFoundError) as exc:
        return jsonify({'error': str(exc)}), 400
    except InternalError:
        core.logger.exception("[momentum] update failed")
    except Exception:
        core.logger.exception("[momentum] request failed")
    return jsonify({}), 500


@sessions.route('/goal', methods=['POST'])
def post_goal():
    core = _core()
    try:
        body = request.get_json(force=True)
        core.logger.info(f"[goal-in] body={body}")
        payload = core.apply_goal(body.get('sessionId'), body.get('isPlayer'), body.get('goal'))
        return jsonify(payload)
    except (ValidationError, NotFoundError) as exc:
        return jsonify({'error': str(exc)}), 400
    except InternalError:
        core.logger.exception("[goal] update failed")
    except Exception:
        core.logger.exception("[goal] request failed")
    return jsonify({}), 500


@sessions.route('/state', methods=['GET'])
def get_state():
    core = _core()
    session_id = request.args.get('id') or request.args.get('sessionId')
    try:
        return jsonify(core.query_state(session_id))
    except NotFoundError:
        return jsonify({}), 404
