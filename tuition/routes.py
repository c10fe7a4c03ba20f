from collections.abc import Mapping
from flask import request, jsonify, session, g
from tuition import app, db
import logging
from tuition.models import User, Teacher
from tuition.errors import TuitionError, InvalidInput
from tuition.policy import capability_required, policy
from tuition.conflicts import check_conflicts
from tuition import scheduling, resources
from tuition.workload import teacher_workload
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.security import check_password_hash

logger = logging.getLogger(__name__)


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, Mapping):
        raise InvalidInput('Invalid request format')
    return body


@app.errorhandler(TuitionError)
def handle_tuition_error(error):
    if error.status_code >= 500:
        logger.error(f"{request.method} {request.path} failed: {error.message}")
    else:
        logger.info(f"{request.method} {request.path} -> {error.status_code}: {error.message}")
    return jsonify({'error': error.message}), error.status_code


@app.errorhandler(HTTPException)
def handle_http_error(error):
    return jsonify({'error': error.description}), error.code


@app.errorhandler(Exception)
def handle_unexpected_error(error):
    db.session.rollback()
    logger.exception(f"Unhandled error on {request.method} {request.path}")
    return jsonify({'error': 'Internal server error'}), 500


# --- Session identity ---
@app.route("/login", methods=['POST'])
def login():
    body = request.get_json(silent=True)
    if body is None:
        body = request.form
    elif not isinstance(body, Mapping):
        raise InvalidInput('Invalid request format')
    username = (body.get('username') or '').strip()
    password = body.get('password') or ''
    if not username or not password:
        raise InvalidInput('Username and password are required')
    user = User.query.filter_by(username=username).first()
    if not user or not check_password_hash(user.password_hash, password):
        logger.warning(f"Failed login for '{username}'")
        return jsonify({'error': 'Invalid username or password'}), 401
    session.clear()
    session.permanent = True
    session['logged_in'] = True
    session['user'] = user.username
    session['user_id'] = user.id
    session['role'] = user.role
    logger.info(f"User '{user.username}' logged in as {user.role}")
    return jsonify({'id': user.id, 'username': user.username, 'role': user.role})


@app.route("/logout", methods=['POST'])
def logout():
    session.clear()
    return jsonify({'message': 'Logged out'})


@app.route("/healthz")
def healthz():
    try:
        teacher_count = Teacher.query.count()
        return jsonify({"status": "ok", "teachers": teacher_count}), 200
    except SQLAlchemyError:
        logger.exception("Health check failed")
        return jsonify({"status": "error"}), 500


# --- Conflict checks ---
@app.route('/api/admin/schedule/conflicts', methods=['POST'])
@capability_required('conflict_check', 'admin')
def admin_schedule_conflicts():
    body = _json_body()
    report = check_conflicts(body.get('schedules'),
                             exclude_class_id=body.get('classId'),
                             teacher_id=body.get('teacherId'))
    return jsonify(report.to_dict())


@app.route('/api/teacher/schedule/conflicts', methods=['POST'])
@capability_required('conflict_check', 'teacher')
def teacher_schedule_conflicts():
    body = _json_body()
    teacher_id = body.get('teacherId')
    if teacher_id in (None, '') and g.actor.role == 'TEACHER':
        own = Teacher.query.filter_by(user_id=g.actor.user_id).first()
        teacher_id = own.id if own else None
    report = check_conflicts(body.get('schedules'),
                             exclude_class_id=body.get('classId'),
                             teacher_id=teacher_id)
    return jsonify(report.to_dict(include_class_id=True))


# --- Class schedules ---
@app.route('/api/admin/classes/<int:class_id>/schedules', methods=['GET'])
@capability_required('schedule', 'read')
def class_schedules(class_id):
    return jsonify([s.to_dict() for s in scheduling.list_class_schedules(class_id)])


@app.route('/api/admin/classes/<int:class_id>/schedules', methods=['POST'])
@capability_required('schedule', 'create')
def create_class_schedule(class_id):
    schedule = scheduling.add_class_schedule(class_id, _json_body(), g.actor)
    return jsonify(schedule.to_dict()), 201


@app.route('/api/admin/classes/<int:class_id>/schedules/<int:schedule_id>', methods=['GET'])
@capability_required('schedule', 'read')
def class_schedule(class_id, schedule_id):
    return jsonify(scheduling.get_class_schedule(class_id, schedule_id).to_dict())


@app.route('/api/admin/classes/<int:class_id>/schedules/<int:schedule_id>', methods=['PATCH'])
@capability_required('schedule', 'update')
def update_class_schedule(class_id, schedule_id):
    schedule = scheduling.update_class_schedule(class_id, schedule_id, _json_body(), g.actor)
    return jsonify(schedule.to_dict())


@app.route('/api/admin/classes/<int:class_id>/schedules/<int:schedule_id>', methods=['DELETE'])
@capability_required('schedule', 'delete')
def delete_class_schedule(class_id, schedule_id):
    scheduling.delete_class_schedule(class_id, schedule_id, g.actor)
    return jsonify({'message': 'Schedule deleted successfully'})


@app.route('/api/teacher/classes/<int:class_id>/schedule', methods=['GET'])
@capability_required('schedule', 'read')
def teacher_class_schedule(class_id):
    return jsonify([s.to_dict() for s in scheduling.list_class_schedules(class_id)])


@app.route('/api/teacher/classes/<int:class_id>/schedule', methods=['PUT'])
@capability_required('schedule', 'replace')
def replace_class_schedule(class_id):
    klass = scheduling.get_class_or_404(class_id)
    policy.ensure_owns_class(g.actor, klass)
    body = _json_body()
    created = scheduling.replace_class_schedules(class_id, body.get('schedules'),
                                                 action=body.get('action') or 'replace',
                                                 actor=g.actor)
    return jsonify({
        'message': 'Class schedules updated successfully',
        'schedules': [s.to_dict() for s in created],
    })


# --- Rooms & time slots ---
@app.route('/api/admin/rooms', methods=['GET'])
@capability_required('room', 'read')
def rooms():
    return jsonify([r.to_dict() for r in resources.list_rooms()])


@app.route('/api/admin/rooms', methods=['POST'])
@capability_required('room', 'create')
def create_room():
    room = resources.create_room(_json_body(), g.actor)
    return jsonify(room.to_dict()), 201


@app.route('/api/admin/timeslots', methods=['GET'])
@capability_required('timeslot', 'read')
def time_slots():
    return jsonify([t.to_dict() for t in resources.list_time_slots()])


@app.route('/api/admin/timeslots', methods=['POST'])
@capability_required('timeslot', 'create')
def create_time_slot():
    slot = resources.create_time_slot(_json_body(), g.actor)
    return jsonify(slot.to_dict()), 201


# --- Workload ---
@app.route('/api/admin/teachers/workload')
@capability_required('workload', 'read')
def workload():
    return jsonify(teacher_workload())
