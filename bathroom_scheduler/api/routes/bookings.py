from flask import Blueprint, request, jsonify, current_app
from bathroom_scheduler.errors import BookingError, InvalidInterval, Overlap, NotFound, PersistenceFailure
from bathroom_scheduler.services.booking_service import BookingService
from bathroom_scheduler.utils.decorators import token_required
from bathroom_scheduler.utils.timeutils import parse_timestamp, parse_date

bookings_bp = Blueprint('bookings', __name__)

ERROR_STATUS = {
    InvalidInterval: 400,
    Overlap: 409,
    NotFound: 404,
    PersistenceFailure: 500,
}

def booking_error_response(error: BookingError):
    status_code = ERROR_STATUS.get(type(error), 400)
    return jsonify(error.to_dict()), status_code

def parse_interval(data):
    """Read start/end/purpose from a JSON body. Raises KeyError/ValueError/TypeError on bad input."""
    start = parse_timestamp(data['start_time'])
    end = parse_timestamp(data['end_time'])
    purpose = data.get('purpose')
    if purpose is not None and (not isinstance(purpose, str) or len(purpose) > 32):
        raise ValueError("purpose must be a short text label")
    return start, end, purpose

def can_modify(current_user, booking):
    return current_user.is_admin or booking.user_id == current_user.id

@bookings_bp.route('/', methods=['GET'])
@token_required
def list_bookings(current_user):
    date_str = request.args.get('date')
    if date_str:
        try:
            day = parse_date(date_str)
        except ValueError:
            return jsonify({'error': 'Invalid date, expected YYYY-MM-DD'}), 400
        bookings = BookingService.get_bookings_for_date(day)
    else:
        bookings = BookingService.get_all_bookings()
    return jsonify([b.to_dict() for b in bookings])

@bookings_bp.route('/purposes', methods=['GET'])
@token_required
def get_purposes(current_user):
    return jsonify(list(current_app.config['BOOKING_PURPOSES']))

@bookings_bp.route('/mine', methods=['GET'])
@token_required
def get_my_bookings(current_user):
    bookings = BookingService.get_user_bookings(current_user.id)
    return jsonify([b.to_dict() for b in bookings])

@bookings_bp.route('/users/<user_id>', methods=['GET'])
@token_required
def get_user_bookings(current_user, user_id):
    bookings = BookingService.get_user_bookings(user_id)
    return jsonify([b.to_dict() for b in bookings])

@bookings_bp.route('/check', methods=['POST'])
@token_required
def check_availability(current_user):
    data = request.get_json(silent=True) or {}
    try:
        start, end, _ = parse_interval(data)
        exclude_id = data.get('exclude_id')
        if exclude_id is not None:
            # Form fields and query strings send ids as text
            exclude_id = int(exclude_id)
        conflict = BookingService.precheck(start, end, exclude_id=exclude_id)
    except BookingError as e:
        return booking_error_response(e)
    except (KeyError, ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid booking data: {e}'}), 400

    if conflict is not None:
        return jsonify({
            'available': False,
            'error': Overlap.message,
            'conflicting_id': conflict.id
        }), 200
    return jsonify({'available': True}), 200

@bookings_bp.route('/', methods=['POST'])
@token_required
def create_booking(current_user):
    data = request.get_json(silent=True) or {}
    try:
        start, end, purpose = parse_interval(data)
        booking = BookingService.create_booking(
            user_id=current_user.id,
            start_time=start,
            end_time=end,
            purpose=purpose
        )
        return jsonify(booking.to_dict()), 201
    except BookingError as e:
        return booking_error_response(e)
    except (KeyError, ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid booking data: {e}'}), 400
    except Exception as e:
        current_app.logger.exception(f"Unexpected error creating booking: {e}")
        return jsonify({'error': 'Server Error'}), 500

@bookings_bp.route('/<int:booking_id>', methods=['PUT'])
@token_required
def update_booking(current_user, booking_id):
    data = request.get_json(silent=True) or {}
    try:
        booking = BookingService.get_booking(booking_id)
        if not can_modify(current_user, booking):
            return jsonify({'error': 'Unauthorized.'}), 403

        start, end, purpose = parse_interval(data)
        booking = BookingService.update_booking(
            booking_id=booking_id,
            start_time=start,
            end_time=end,
            purpose=purpose
        )
        return jsonify(booking.to_dict()), 200
    except BookingError as e:
        return booking_error_response(e)
    except (KeyError, ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid booking data: {e}'}), 400
    except Exception as e:
        current_app.logger.exception(f"Unexpected error updating booking {booking_id}: {e}")
        return jsonify({'error': 'Server Error'}), 500

@bookings_bp.route('/<int:booking_id>', methods=['DELETE'])
@token_required
def delete_booking(current_user, booking_id):
    try:
        booking = BookingService.get_booking(booking_id)
        if not can_modify(current_user, booking):
            return jsonify({'error': 'Unauthorized.'}), 403

        BookingService.delete_booking(booking_id)
        return jsonify({'message': 'Booking cancelled successfully.'}), 200
    except BookingError as e:
        return booking_error_response(e)
    except Exception as e:
        current_app.logger.exception(f"Unexpected error deleting booking {booking_id}: {e}")
        return jsonify({'error': 'Server Error'}), 500
