# ==============================================================================
# CONFIGURACIÓN GLOBAL
# ==============================================================================
# Constantes del sistema. Todas pueden sobrescribirse con variables de entorno
# para no tocar código al desplegar en otra máquina del salón.
#
# Comando de ejemplo:
#   export SALON_PRODUCT_COMMISSION_PERCENT=0.5
# ==============================================================================

import os


def _env_float(name, default):
    """Lee un float de una variable de entorno (usa default si es inválido)."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"[ADVERTENCIA] {name}={raw!r} no es numérico, usando {default}")
        return default


def _env_int(name, default):
    return int(_env_float(name, default))


# ═══════════════════════════════════════════════════════════════════════════════
# MODO PRODUCCIÓN
# ═══════════════════════════════════════════════════════════════════════════════
# True = sin contraseñas por defecto visibles en logs
PRODUCTION_MODE = os.environ.get('SALON_PRODUCTION_MODE', '1') == '1'

# ═══════════════════════════════════════════════════════════════════════════════
# ARCHIVOS DE DATOS
# ═══════════════════════════════════════════════════════════════════════════════
BASE = os.environ.get('SALON_DATA_DIR') or os.getcwd()
DATA_FILE_NAME = os.environ.get('SALON_DATA_FILE', 'data.json')
BACKUP_SUFFIX = '.backup'

# ═══════════════════════════════════════════════════════════════════════════════
# POLÍTICA DE COMISIONES
# ═══════════════════════════════════════════════════════════════════════════════
# Porcentaje por defecto que gana el personal por venta de productos
# (se usa si el empleado no tiene un porcentaje propio configurado).
PRODUCT_COMMISSION_PERCENT = _env_float('SALON_PRODUCT_COMMISSION_PERCENT', 5.0)

# Porcentaje fijo por servicios. NO es configurable por empleado.
SERVICE_COMMISSION_PERCENT = _env_float('SALON_SERVICE_COMMISSION_PERCENT', 40.0)

# ═══════════════════════════════════════════════════════════════════════════════
# AUTOGUARDADO
# ═══════════════════════════════════════════════════════════════════════════════
AUTOSAVE_INTERVAL_SECONDS = _env_float('SALON_AUTOSAVE_INTERVAL', 30.0)

# Espera máxima al cerrar el proceso para que termine el último guardado
EXIT_SAVE_TIMEOUT_SECONDS = _env_float('SALON_EXIT_SAVE_TIMEOUT', 5.0)

# ═══════════════════════════════════════════════════════════════════════════════
# BACKUPS
# ═══════════════════════════════════════════════════════════════════════════════
MAX_BACKUPS = _env_int('SALON_MAX_BACKUPS', 7)
BACKUP_DIR_NAME = 'backups'

# ═══════════════════════════════════════════════════════════════════════════════
# USUARIO POR DEFECTO (documento nuevo)
# ═══════════════════════════════════════════════════════════════════════════════
DEFAULT_ADMIN_USER = os.environ.get('SALON_DEFAULT_ADMIN_USER', 'HARMONICSALON')
DEFAULT_ADMIN_PASSWORD = os.environ.get('SALON_DEFAULT_ADMIN_PASSWORD', 'harmonic4')

# ═══════════════════════════════════════════════════════════════════════════════
# SESIONES / SERVIDOR
# ═══════════════════════════════════════════════════════════════════════════════
_DEFAULT_SECRET = "salon_ledger_dev_secret_key_change_in_production"
SECRET_KEY = os.environ.get('SALON_SECRET_KEY') or _DEFAULT_SECRET

HOST = os.environ.get('FLASK_HOST', '127.0.0.1')
PORT = _env_int('FLASK_PORT', 5000)
DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'

# ═══════════════════════════════════════════════════════════════════════════════
# PROFILING
# ═══════════════════════════════════════════════════════════════════════════════
ENABLE_PROFILING = os.environ.get('SALON_ENABLE_PROFILING', '1') == '1'
