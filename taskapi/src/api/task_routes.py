"""
Task API Routes - RESTful Endpoints for Task Management

This module defines all HTTP endpoints for task operations following REST conventions:
- GET    /api/tasks          → List the caller's tasks (simple pagination)
- POST   /api/tasks          → Create new task
- GET    /api/tasks/<id>     → Get single task by ID
- PUT    /api/tasks/<id>     → Update task state
- DELETE /api/tasks/<id>     → Delete task

Authentication:
All endpoints require a valid bearer token in the Authorization header:
    Authorization: Bearer <token>

Ownership:
A task is only visible to and mutable by the user who created it.

HTTP Status Codes:
    200 - Success (GET, PUT, DELETE)
    201 - Created (POST)
    401 - Missing, unknown or revoked token
    403 - Task belongs to another user
    404 - Task not found
    422 - Validation error
    429 - Rate limited
"""

from flask import current_app, jsonify, request, url_for

from taskapi.src.api import api_bp
from taskapi.src.api.guards import auth_required, get_payload, get_task_service
from taskapi.src.utils.pagination import normalize_page_params


@api_bp.route('/tasks', methods=['GET'])
@auth_required
def get_tasks(current_user):
    """
    Retrieve one page of the caller's tasks, oldest first.

    Query Parameters (all optional):
        page       - Page number (default: 1, 1-indexed)
        page_size  - Items per page (alias: per_page; default: 10, max: 100)

    Success Response (200):
        {
            "data": [{"id": 1, "name": "Buy milk", "state": "active", ...}],
            "links": {"first": "...", "prev": null, "next": "..."},
            "meta": {
                "current_page": 1,
                "per_page": 10,
                "from": 1,
                "to": 10,
                "has_more": true,
                "next_page": 2,
                "prev_page": null
            }
        }

    No total count is computed ("simple" pagination).
    """
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('page_size', type=int) or request.args.get('per_page', type=int)
    page, per_page = normalize_page_params(
        page,
        per_page,
        default_per_page=current_app.config['ITEMS_PER_PAGE'],
        max_per_page=current_app.config['MAX_ITEMS_PER_PAGE']
    )

    result = get_task_service().list(current_user, page=page, per_page=per_page)

    def page_url(number):
        return url_for('api.get_tasks', page=number, page_size=per_page, _external=True)

    return jsonify(result.to_dict(lambda task: task.to_dict(), page_url)), 200


@api_bp.route('/tasks', methods=['POST'])
@auth_required
def create_task(current_user):
    """
    Create a new task owned by the caller.

    Request Body (JSON):
        {"name": "Buy milk"}    # Required

    Any other field (owner_id, state, id...) is ignored; new tasks always
    start in the "active" state and belong to the caller.

    Success Response (201):
        {
            "message": "Task created successfully",
            "task": {"id": 1, "name": "Buy milk", "state": "active", "owner_id": 1, ...}
        }
    """
    task = get_task_service().create(current_user, get_payload())
    return jsonify({
        'message': 'Task created successfully',
        'task': task.to_dict()
    }), 201


@api_bp.route('/tasks/<int:task_id>', methods=['GET'])
@auth_required
def get_task(current_user, task_id):
    """Retrieve one of the caller's tasks by ID."""
    task = get_task_service().get(current_user, task_id)
    return jsonify({'task': task.to_dict()}), 200


@api_bp.route('/tasks/<int:task_id>', methods=['PUT'])
@auth_required
def update_task(current_user, task_id):
    """
    Update the state of one of the caller's tasks.

    Request Body (JSON):
        {"state": "done"}    # Required, any non-empty text

    Success Response (200):
        {
            "message": "Task updated successfully",
            "task": {"id": 42, "state": "done", ...}
        }
    """
    task = get_task_service().update_state(current_user, task_id, get_payload())
    return jsonify({
        'message': 'Task updated successfully',
        'task': task.to_dict()
    }), 200


@api_bp.route('/tasks/<int:task_id>', methods=['DELETE'])
@auth_required
def delete_task(current_user, task_id):
    """
    Permanently delete one of the caller's tasks.

    Warning:
        This is a HARD DELETE - the task is removed from the database.
    """
    get_task_service().delete(current_user, task_id)
    return jsonify({
        'message': f'Task {task_id} deleted successfully'
    }), 200
