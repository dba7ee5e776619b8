# ==============================================================================
# SALON LEDGER - Punto de venta y comisiones para salón
# ==============================================================================
# Paquete principal. La app Flask se crea con salon_ledger.main.create_app().
# ==============================================================================

__version__ = '1.0.0'
