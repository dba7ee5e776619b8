# ==============================================================================
# SISTEMA DE PROFILING INTERNO
# ==============================================================================
# Mide rendimiento de rutas y operaciones del ledger sin afectar al usuario.
# Guarda logs legibles en <SALON_DATA_DIR>/logs/ para análisis humano.
#
# ACTIVAR/DESACTIVAR: variable de entorno SALON_ENABLE_PROFILING=0
# ==============================================================================

import os
import threading
import time
from collections import defaultdict
from datetime import datetime
from functools import wraps

from salon_ledger import config

# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

ENABLE_PROFILING = config.ENABLE_PROFILING

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

LOGS_DIR = os.path.join(config.BASE, 'logs')

PERFORMANCE_LOG_NAME = 'performance.log'
SLOW_ROUTES_LOG_NAME = 'slow_routes.log'
SLOW_FUNCTIONS_LOG_NAME = 'slow_functions.log'

# Mapeo de rutas a nombres legibles (para logs más humanos)
ROUTE_NAMES = {
    # Autenticación
    'POST /api/login': 'Iniciar sesión',
    'POST /api/logout': 'Cerrar sesión',

    # Catálogo
    'POST /api/staff': 'Crear personal',
    'PUT /api/staff/<staff_id>': 'Editar personal',
    'DELETE /api/staff/<staff_id>': 'Eliminar personal',
    'POST /api/products': 'Crear productos',
    'PUT /api/products/<product_id>': 'Editar producto',
    'DELETE /api/products/<product_id>': 'Eliminar producto',
    'POST /api/products/<product_id>/restock': 'Reponer stock',

    # Ventas y sueldos
    'POST /api/sell/product': 'Vender producto',
    'POST /api/sell/service': 'Vender servicio',
    'POST /api/salary/pay': 'Pagar sueldo',

    # Gastos
    'POST /api/expenses': 'Registrar gasto',

    # Reportes
    'GET /api/reports/summary': 'Ver resumen',
    'GET /api/reports/staff': 'Ver comisiones del personal',
    'GET /api/reports/monthly': 'Ver ganancia mensual',

    # Backups
    'POST /api/backups': 'Crear backup',
    'POST /api/restore': 'Restaurar datos',
}


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# Estructura: {nombre_funcion: {calls: int, total_time: float, max_time: float}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()
_log_lock = threading.Lock()


def set_logs_dir(path):
    """Cambia la carpeta de logs (la app la apunta a su carpeta de datos)."""
    global LOGS_DIR
    LOGS_DIR = path


def _log_path(name):
    return os.path.join(LOGS_DIR, name)


def _get_timestamp():
    """Obtiene timestamp legible"""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def _write_log(name, content):
    """Escribe contenido a un archivo de log (thread-safe)"""
    try:
        with _log_lock:
            os.makedirs(LOGS_DIR, exist_ok=True)
            with open(_log_path(name), 'a', encoding='utf-8') as f:
                f.write(content)
    except OSError as e:
        # El profiling nunca debe romper una venta
        print(f"[PROFILING] No se pudo escribir {name}: {e}")


def _get_route_name(method, path, rule=None):
    """
    Obtiene nombre legible para una ruta.
    Intenta con la ruta exacta y luego con la regla de Flask (con parámetros).
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]

    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]

    return key


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    """Registra el rendimiento de una ruta en performance.log"""
    if not ENABLE_PROFILING:
        return

    log_entry = f"""
════════════════════════════════════════
[PERFORMANCE] {_get_timestamp()}
────────────────────────────────────────
Acción: {_get_route_name(method, path, rule)}
Usuario: {user or 'anónimo'}
Ruta: {method} {path}
Tiempo: {time_ms:.0f} ms
"""
    _write_log(PERFORMANCE_LOG_NAME, log_entry)


def log_slow_route(method, path, rule, time_ms, user=None, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>300ms) o 'CRITICAL' (>700ms)
    """
    if not ENABLE_PROFILING:
        return

    severity = 'LENTA' if level == 'WARNING' else 'MUY LENTA'
    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL

    log_entry = f"""
[{level}] {_get_timestamp()}
────────────────────────────────────────
Ruta {severity}: {_get_route_name(method, path, rule)}
Usuario: {user or 'anónimo'}
Detalle: {method} {path}
Tiempo: {time_ms:.0f} ms (umbral: {threshold} ms)
────────────────────────────────────────
"""
    _write_log(SLOW_ROUTES_LOG_NAME, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ HOOKS PARA FLASK (before/after request)
# ═══════════════════════════════════════════════════════════════════════════

def init_profiling(app):
    """
    Inicializa el profiling en una app Flask.
    Registra hooks before_request y after_request.
    """
    if not ENABLE_PROFILING:
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request, session

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000  # ms
        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path
        user = session.get('user')

        log_route_performance(method, path, rule, elapsed, user)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, user, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, user, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de operaciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Pagar sueldo")
        def pay_salary(self, staff_id):
            ...
    """
    def decorator(fn):
        if not ENABLE_PROFILING:
            return fn

        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    """Registra una llamada lenta a una función"""
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'

    log_entry = f"""
[{severity}] {_get_timestamp()}
Función: {func_name}
Tiempo: {time_ms:.0f} ms
────────────────────────────────────────
"""
    _write_log(SLOW_FUNCTIONS_LOG_NAME, log_entry)


# ═══════════════════════════════════════════════════════════════════════════
# 4️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def write_function_stats_report():
    """Escribe un reporte legible de estadísticas en slow_functions.log"""
    if not ENABLE_PROFILING:
        return

    stats = get_function_stats()
    if not stats:
        return

    sorted_stats = sorted(stats.items(), key=lambda x: x[1]['avg_time'], reverse=True)

    report = f"""
══════════════════════════════════════════════════════════
  REPORTE DE RENDIMIENTO DE OPERACIONES
  Generado: {_get_timestamp()}
══════════════════════════════════════════════════════════

"""
    for func_name, data in sorted_stats:
        status = ''
        if data['avg_time'] >= THRESHOLD_CRITICAL:
            status = ' CRÍTICO'
        elif data['avg_time'] >= THRESHOLD_WARNING:
            status = ' LENTO'

        report += f"""FUNCIÓN: {func_name}{status}
  Llamadas totales: {data['calls']}
  Tiempo promedio:  {data['avg_time']:.0f} ms
  Tiempo máximo:    {data['max_time']:.0f} ms

"""
    _write_log(SLOW_FUNCTIONS_LOG_NAME, report)


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'ENABLE_PROFILING',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'write_function_stats_report',
    'reset_stats',
    'set_logs_dir',
]
