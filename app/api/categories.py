"""
Email Category Routes Blueprint

- GET    /api/categories                : list categories (?active=, ?search=, ?page=, ?limit=)
- POST   /api/categories                : create category
- GET    /api/categories/<id>           : get category
- PUT    /api/categories/<id>           : update category
- DELETE /api/categories/<id>           : delete category
- GET    /api/categories/active         : active categories in classification order
- GET    /api/categories/stats          : stored email count per category
- POST   /api/categories/validate-name  : check a name is well formed and unused

Without a database the built-in rules are served read-only.
"""

import logging
from flask import Blueprint, request, jsonify, current_app

from services.category_service import CategoryService, CategoryConflictError
from services.email_classifier import DEFAULT_CATEGORY_RULES
from validators import ValidationError, validate_category_name, format_validation_error

logger = logging.getLogger(__name__)

# Create blueprint
categories_bp = Blueprint('categories_bp', __name__, url_prefix='/api/categories')


def database_enabled():
    return current_app.config.get('STORAGE_MODE') == 'database'


def read_only():
    return jsonify({
        'success': False,
        'error': 'Service Unavailable',
        'message': 'Category changes require a configured database'
    }), 503


def default_categories():
    """Built-in rules shaped like stored categories, ids by position"""
    return [dict(rule, id=index, active=True) for index, rule in enumerate(DEFAULT_CATEGORY_RULES, start=1)]


def validation_failed(error):
    return jsonify(format_validation_error(getattr(error, 'field', None), str(error))), 400


def category_not_found(category_id):
    return jsonify({
        'success': False,
        'error': 'Category not found',
        'message': f"Category {category_id} does not exist"
    }), 404


def _parse_active(value):
    if value is None:
        return None
    return value.lower() == 'true'


@categories_bp.route('', methods=['GET'])
def list_categories():
    """List categories with optional filters and pagination"""
    try:
        page = int(request.args.get('page', 1))
        limit = min(int(request.args.get('limit', 50)), 200)
    except ValueError:
        return validation_failed(ValidationError('page and limit must be integers'))
    if page < 1 or limit < 1:
        return validation_failed(ValidationError('page and limit must be at least 1'))

    active = _parse_active(request.args.get('active'))
    search = request.args.get('search')

    try:
        if not database_enabled():
            categories = default_categories()
            if active is False:
                categories = []
            if search:
                term = search.lower()
                categories = [c for c in categories
                              if term in c['name'].lower() or term in c['description'].lower()]
            result = {'categories': categories[(page - 1) * limit:page * limit], 'total': len(categories)}
        else:
            from database.connection import get_db_session
            with get_db_session() as session:
                result = CategoryService(session).list_categories(
                    active=active, search=search, page=page, limit=limit
                )

        return jsonify({
            'success': True,
            'data': result['categories'],
            'pagination': {'page': page, 'limit': limit, 'total': result['total']},
            'message': 'Categories retrieved successfully'
        })
    except Exception as e:
        logger.error(f"Error retrieving categories: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to retrieve categories', 'message': str(e)}), 500


@categories_bp.route('', methods=['POST'])
def create_category():
    """Create a category"""
    if not database_enabled():
        return read_only()

    data = request.get_json(silent=True)
    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            category = CategoryService(session).create_category(data)

        return jsonify({
            'success': True,
            'data': category,
            'message': 'Category created successfully'
        }), 201
    except ValidationError as e:
        return validation_failed(e)
    except CategoryConflictError as e:
        return jsonify({'success': False, 'error': 'Conflict', 'message': str(e)}), 409
    except Exception as e:
        logger.error(f"Error creating category: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to create category', 'message': str(e)}), 500


@categories_bp.route('/active', methods=['GET'])
def active_categories():
    """Active categories in the order the classifier scores them"""
    try:
        if not database_enabled():
            categories = default_categories()
        else:
            from database.connection import get_db_session
            with get_db_session() as session:
                categories = CategoryService(session).get_active_categories()

        return jsonify({
            'success': True,
            'data': categories,
            'message': 'Active categories retrieved successfully'
        })
    except Exception as e:
        logger.error(f"Error retrieving active categories: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to retrieve categories', 'message': str(e)}), 500


@categories_bp.route('/stats', methods=['GET'])
def category_stats():
    """Stored email count per category"""
    if not database_enabled():
        return read_only()

    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            stats = CategoryService(session).get_category_stats()

        return jsonify({
            'success': True,
            'data': stats,
            'message': 'Category statistics retrieved successfully'
        })
    except Exception as e:
        logger.error(f"Error retrieving category stats: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to retrieve statistics', 'message': str(e)}), 500


@categories_bp.route('/validate-name', methods=['POST'])
def check_category_name():
    """Check a category name is well formed and not taken"""
    data = request.get_json(silent=True) or {}
    name = data.get('name')

    try:
        if not database_enabled():
            is_valid, error = validate_category_name(name)
            if is_valid and any(rule['name'] == name for rule in DEFAULT_CATEGORY_RULES):
                is_valid, error = False, f"Category with name '{name}' already exists"
            result = {'valid': True} if is_valid else {'valid': False, 'message': error}
        else:
            from database.connection import get_db_session
            with get_db_session() as session:
                result = CategoryService(session).validate_category_name(name)

        return jsonify({'success': True, 'data': result, 'message': 'Name checked'})
    except Exception as e:
        logger.error(f"Error validating category name: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to validate name', 'message': str(e)}), 500


@categories_bp.route('/<int:category_id>', methods=['GET'])
def get_category(category_id):
    """Get a category by id"""
    try:
        if not database_enabled():
            matches = [c for c in default_categories() if c['id'] == category_id]
            category = matches[0] if matches else None
        else:
            from database.connection import get_db_session
            with get_db_session() as session:
                category = CategoryService(session).get_category(category_id)

        if not category:
            return category_not_found(category_id)

        return jsonify({
            'success': True,
            'data': category,
            'message': 'Category retrieved successfully'
        })
    except ValidationError as e:
        return validation_failed(e)
    except Exception as e:
        logger.error(f"Error retrieving category: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to retrieve category', 'message': str(e)}), 500


@categories_bp.route('/<int:category_id>', methods=['PUT'])
def update_category(category_id):
    """Update a category; only the supplied fields change"""
    if not database_enabled():
        return read_only()

    data = request.get_json(silent=True)
    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            category = CategoryService(session).update_category(category_id, data)

        if not category:
            return category_not_found(category_id)

        return jsonify({
            'success': True,
            'data': category,
            'message': 'Category updated successfully'
        })
    except ValidationError as e:
        return validation_failed(e)
    except CategoryConflictError as e:
        return jsonify({'success': False, 'error': 'Conflict', 'message': str(e)}), 409
    except Exception as e:
        logger.error(f"Error updating category: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to update category', 'message': str(e)}), 500


@categories_bp.route('/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    """Delete a category; stored emails keep their category name"""
    if not database_enabled():
        return read_only()

    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            deleted = CategoryService(session).delete_category(category_id)

        if not deleted:
            return category_not_found(category_id)

        return jsonify({
            'success': True,
            'data': {'id': category_id},
            'message': 'Category deleted successfully'
        })
    except ValidationError as e:
        return validation_failed(e)
    except Exception as e:
        logger.error(f"Error deleting category: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to delete category', 'message': str(e)}), 500
