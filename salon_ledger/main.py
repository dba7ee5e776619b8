# ==============================================================================
# APLICACIÓN WEB - API JSON del salón
# ==============================================================================
# Las rutas solo orquestan: request → servicio → respuesta JSON.
# Toda la lógica vive en services/.
#
# FORMATO DE RESPUESTA:
#   éxito            → {"ok": true, "result": ...}
#   error de negocio → {"ok": false, "error": "..."} con 400 / 404 / 409
#   guardado fallido → {"ok": true, "persisted": false, "warning": "...", "result": ...}
#                      (la operación quedó aplicada en memoria)
#
# SEGURIDAD:
#   - Sesión por cookie (login con usuario/contraseña)
#   - Token CSRF obligatorio en POST/PUT/DELETE (header X-CSRF-Token o
#     campo csrf_token del JSON). Se obtiene al hacer login.
# ==============================================================================

import atexit
import os
import uuid
from functools import wraps

from flask import Blueprint, Flask, current_app, jsonify, request, session
from werkzeug.exceptions import HTTPException

from salon_ledger import config
from salon_ledger.app_container import AppContainer, get_container
from salon_ledger.exceptions import (
    ConflictError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from salon_ledger.performance_logger import init_profiling, set_logs_dir, write_function_stats_report
from salon_ledger.services.backup_service import run_startup_backup
from salon_ledger.services.catalog_service import UNCHANGED

api = Blueprint('api', __name__, url_prefix='/api')

# Métodos que modifican datos (requieren token CSRF)
MUTATING_METHODS = frozenset(['POST', 'PUT', 'DELETE'])


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _container() -> AppContainer:
    return current_app.extensions['salon_ledger']


def serialize(value):
    """Convierte entidades (to_dict), listas y dicts anidados a JSON plano."""
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


def ok(result=None, status=200):
    return jsonify({'ok': True, 'result': serialize(result)}), status


def _body() -> dict:
    """Cuerpo JSON de la petición (vacío si no hay)."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("El cuerpo debe ser un objeto JSON")
    return data


def generate_csrf_token() -> str:
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


# ═══════════════════════════════════════════════════════════════════════════════
# DECORADORES DE SEGURIDAD
# ═══════════════════════════════════════════════════════════════════════════════

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if 'user' not in session:
            return jsonify({'ok': False, 'error': 'Debes iniciar sesión'}), 401
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if session.get('role') != 'admin':
            return jsonify({'ok': False, 'error': 'Permiso denegado'}), 403
        return f(*args, **kwargs)
    return wrapper


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method in MUTATING_METHODS:
            token = session.get('csrf_token')
            sent = request.headers.get('X-CSRF-Token') or request.headers.get('X-CSRFToken')
            if not sent and request.is_json:
                json_data = request.get_json(silent=True)
                if isinstance(json_data, dict):
                    sent = json_data.get('csrf_token')
            if not token or not sent or token != sent:
                return jsonify({'ok': False, 'error': 'CSRF token inválido'}), 403
        return f(*args, **kwargs)
    return wrapper


def protected(f):
    """login_required + verify_csrf (orden: primero sesión, después token)."""
    return login_required(verify_csrf(f))


# ═══════════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════════

def handle_persistence_error(e: PersistenceError):
    print(f"[ERROR] {request.method} {request.path}: guardado fallido: {e}")
    return jsonify({
        'ok': True,
        'persisted': False,
        'warning': f'Operación aplicada pero no guardada: {e}',
        'result': serialize(e.result),
    }), 200


def handle_ledger_error(e: LedgerError):
    if isinstance(e, ValidationError):
        status = 400
    elif isinstance(e, NotFoundError):
        status = 404
    elif isinstance(e, ConflictError):
        status = 409
    else:
        status = 400
    return jsonify({'ok': False, 'error': str(e)}), status


def handle_unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        return jsonify({'ok': False, 'error': e.description}), e.code
    print(f"[ERROR] {request.method} {request.path}: {type(e).__name__}: {e}")
    return jsonify({'ok': False, 'error': 'Error interno del servidor'}), 500


def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    response.headers['Cache-Control'] = 'no-store'
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/login', methods=['POST'])
def login():
    data = _body()
    user = _container().user_service.authenticate(data.get('username'), data.get('password'))
    if user is None:
        return jsonify({'ok': False, 'error': 'Usuario o contraseña incorrectos'}), 401
    session.clear()
    session.permanent = True
    session['user'] = user['username']
    session['role'] = user['role']
    return ok({**user, 'csrf_token': generate_csrf_token()})


@api.route('/logout', methods=['POST'])
@protected
def logout():
    session.clear()
    return ok()


@api.route('/session', methods=['GET'])
@login_required
def current_session():
    return ok({
        'username': session['user'],
        'role': session.get('role'),
        'csrf_token': generate_csrf_token(),
    })


@api.route('/session/blur', methods=['POST'])
@protected
def session_blur():
    """La UI perdió el foco: guardar en background."""
    _container().autosave_service.request_save('blur')
    return ok()


@api.route('/users', methods=['GET', 'POST'])
@protected
@admin_required
def users():
    service = _container().user_service
    if request.method == 'GET':
        return ok(service.list_users())
    data = _body()
    return ok(service.add_or_update_user(
        data.get('username'), data.get('password'), data.get('role', 'admin')
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# PERSONAL
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/staff', methods=['GET', 'POST'])
@protected
def staff_collection():
    catalog = _container().catalog_service
    if request.method == 'GET':
        return ok(catalog.list_staff())
    data = _body()
    created = catalog.create_staff(
        data.get('name'),
        data.get('sections', data.get('section')),
        data.get('commissionPercentOverride'),
        data.get('phone', ''),
    )
    return ok(created, 201)


@api.route('/staff/<staff_id>', methods=['GET', 'PUT', 'DELETE'])
@protected
def staff_item(staff_id):
    catalog = _container().catalog_service
    if request.method == 'GET':
        return ok(catalog.get_staff(staff_id))
    if request.method == 'DELETE':
        return ok(catalog.delete_staff(staff_id))
    data = _body()
    return ok(catalog.update_staff(
        staff_id,
        name=data.get('name'),
        sections=data.get('sections'),
        commission_percent_override=data.get('commissionPercentOverride', UNCHANGED),
        phone=data.get('phone'),
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# PRODUCTOS
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/products', methods=['GET', 'POST'])
@protected
def product_collection():
    catalog = _container().catalog_service
    if request.method == 'GET':
        return ok(catalog.list_products())
    data = _body()
    if 'text' in data:
        return ok(catalog.create_products(data['text'], data.get('price'), data.get('stock', 0)), 201)
    return ok(catalog.create_product(data.get('name'), data.get('price'), data.get('stock', 0)), 201)


@api.route('/products/<product_id>', methods=['GET', 'PUT', 'DELETE'])
@protected
def product_item(product_id):
    catalog = _container().catalog_service
    if request.method == 'GET':
        return ok(catalog.get_product(product_id))
    if request.method == 'DELETE':
        return ok(catalog.delete_product(product_id))
    data = _body()
    return ok(catalog.update_product(
        product_id, name=data.get('name'), price=data.get('price'), stock=data.get('stock')
    ))


@api.route('/products/<product_id>/restock', methods=['POST'])
@protected
def product_restock(product_id):
    data = _body()
    return ok(_container().catalog_service.restock(product_id, data.get('quantity')))


# ═══════════════════════════════════════════════════════════════════════════════
# VENTAS Y SUELDOS
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/sell/product', methods=['POST'])
@protected
def sell_product():
    data = _body()
    transaction = _container().ledger_service.sell_product(
        data.get('productId'),
        data.get('quantity', 1),
        staff_id=data.get('staffId'),
        payment_method=data.get('paymentMethod'),
        unit_price=data.get('unitPrice'),
    )
    return ok(transaction, 201)


@api.route('/sell/service', methods=['POST'])
@protected
def sell_service():
    """Un servicio ({name, ...}) o varios ({names: "a, b" | [...]})."""
    data = _body()
    ledger = _container().ledger_service
    if 'names' in data:
        batch = ledger.sell_services(
            data.get('names'),
            data.get('section'),
            data.get('price'),
            staff_id=data.get('staffId'),
            payment_method=data.get('paymentMethod'),
        )
        status = 201 if batch['ok'] else 409
        return jsonify({
            'ok': batch['ok'],
            'result': serialize(batch['transactions']),
            'errors': batch['errors'],
            'count': batch['count'],
        }), status

    transaction = ledger.sell_service(
        data.get('name'),
        data.get('section'),
        data.get('price'),
        staff_id=data.get('staffId'),
        payment_method=data.get('paymentMethod'),
    )
    return ok(transaction, 201)


@api.route('/salary/pay', methods=['POST'])
@protected
def pay_salary():
    data = _body()
    return ok(_container().ledger_service.pay_salary(data.get('staffId')), 201)


@api.route('/salary/history', methods=['GET'])
@login_required
def salary_history():
    args = request.args
    return ok(_container().report_service.salary_history(
        staff_id=args.get('staffId'),
        year=args.get('year', type=int),
        month=args.get('month', type=int),
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# GASTOS
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/expenses', methods=['GET', 'POST'])
@protected
def expense_collection():
    expenses = _container().expense_service
    if request.method == 'GET':
        return ok(expenses.list_expenses(request.args.get('start'), request.args.get('end')))
    data = _body()
    return ok(expenses.create_expense(
        data.get('title'), data.get('amount'), data.get('date'), data.get('paymentMethod')
    ), 201)


@api.route('/expenses/<expense_id>', methods=['PUT', 'DELETE'])
@protected
def expense_item(expense_id):
    expenses = _container().expense_service
    if request.method == 'DELETE':
        return ok(expenses.delete_expense(expense_id))
    data = _body()
    return ok(expenses.update_expense(
        expense_id,
        title=data.get('title'),
        amount=data.get('amount'),
        date=data.get('date'),
        payment_method=data.get('paymentMethod'),
    ))


# ═══════════════════════════════════════════════════════════════════════════════
# REPORTES
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/reports/summary', methods=['GET'])
@login_required
def report_summary():
    args = request.args
    return ok(_container().report_service.summary(
        args.get('period', 'today'), start=args.get('start'), end=args.get('end')
    ))


@api.route('/reports/staff', methods=['GET'])
@login_required
def report_staff():
    return ok(_container().report_service.staff_commissions())


@api.route('/reports/monthly', methods=['GET'])
@login_required
def report_monthly():
    return ok(_container().report_service.monthly_salon_profit())


@api.route('/reports/recent', methods=['GET'])
@login_required
def report_recent():
    args = request.args
    return ok(_container().report_service.recent_transactions(
        limit=args.get('limit', 8, type=int), kind=args.get('kind')
    ))


@api.route('/reports/breakdown', methods=['GET'])
@login_required
def report_breakdown():
    args = request.args
    return ok(_container().report_service.daily_breakdown(
        args.get('period', 'month'), start=args.get('start'), end=args.get('end')
    ))


@api.route('/reports/slip/<staff_id>', methods=['GET'])
@login_required
def report_slip(staff_id):
    return ok(_container().report_service.staff_salary_slip(staff_id))


# ═══════════════════════════════════════════════════════════════════════════════
# BACKUPS / RESTAURAR / REINICIAR
# ═══════════════════════════════════════════════════════════════════════════════

@api.route('/backups', methods=['GET', 'POST'])
@protected
@admin_required
def backups():
    service = _container().backup_service
    if request.method == 'GET':
        return ok(service.get_backup_status())
    result = service.create_backup(force=True)
    service.rotate_backups()
    if not result['success']:
        return jsonify({'ok': False, 'error': result['message'], 'errors': result['errors']}), 500
    return ok(result, 201)


@api.route('/restore', methods=['POST'])
@protected
@admin_required
def restore():
    """Restaura desde {"data": {...}} (JSON exportado) o {"backup": "backup_YYYY-MM-DD.zip"}."""
    data = _body()
    service = _container().backup_service
    if data.get('backup'):
        document = service.restore_from_backup(data['backup'])
    elif 'data' in data:
        document = service.restore(data['data'])
    else:
        raise ValidationError("Indica 'data' o 'backup' para restaurar")
    return ok({
        'staff': len(document.staff),
        'products': len(document.products),
        'transactions': len(document.transactions),
    })


@api.route('/reset', methods=['POST'])
@protected
@admin_required
def reset():
    if _body().get('confirm') is not True:
        raise ValidationError("Confirma el reinicio con {\"confirm\": true}")
    _container().backup_service.reset()
    session.clear()
    return ok()


# ═══════════════════════════════════════════════════════════════════════════════
# FÁBRICA DE LA APLICACIÓN
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(base_path: str = None, testing: bool = False) -> Flask:
    """
    Crea la aplicación Flask.

    Args:
        base_path: Carpeta de datos (por defecto config.BASE / SALON_DATA_DIR)
        testing: Si True, no arranca autoguardado ni backup de inicio
    """
    app = Flask(__name__)
    base = os.path.abspath(base_path or config.BASE)

    if config.PRODUCTION_MODE and config.SECRET_KEY == config._DEFAULT_SECRET and not testing:
        print("[ADVERTENCIA] PRODUCTION_MODE activo sin SALON_SECRET_KEY definida")
        print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

    app.secret_key = config.SECRET_KEY
    app.config.update(
        TESTING=testing,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SECURE=False,
        SESSION_COOKIE_SAMESITE='Lax',
        PERMANENT_SESSION_LIFETIME=86400,
        MAX_CONTENT_LENGTH=10 * 1024 * 1024,
    )

    container = get_container(base)
    app.extensions['salon_ledger'] = container

    # Crea data.json (con el usuario inicial) si no existe
    container.document_repo.load()

    set_logs_dir(os.path.join(base, 'logs'))
    init_profiling(app)

    app.register_blueprint(api)
    app.after_request(set_security_headers)
    app.register_error_handler(PersistenceError, handle_persistence_error)
    app.register_error_handler(LedgerError, handle_ledger_error)
    app.register_error_handler(Exception, handle_unexpected_error)

    if not testing:
        run_startup_backup(container.backup_service)
        container.autosave_service.start()
        atexit.register(write_function_stats_report)

    print(f"[LEDGER] Datos en {container.document_repo.file_path}")
    return app


if __name__ == '__main__':
    create_app().run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
