# ==============================================================================
# WSGI Entry Point - Para Gunicorn / Waitress en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/             <- Directorio de trabajo (en sys.path automáticamente)
#   ├── wsgi.py            <- Este archivo
#   ├── pyproject.toml
#   └── salon_ledger/      <- Paquete Python
#       ├── __init__.py
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# La carpeta de datos se toma de SALON_DATA_DIR (por defecto, el directorio
# de trabajo).
# ==============================================================================

from salon_ledger import config
from salon_ledger.main import create_app

app = create_app()

if __name__ == '__main__':
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
