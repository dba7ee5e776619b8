# ==============================================================================
# SERVICIO DE AUTOGUARDADO
# ==============================================================================
# Además del guardado síncrono tras cada operación, el documento se guarda:
#   1. Cada AUTOSAVE_INTERVAL_SECONDS (thread en background)
#   2. Cuando la sesión pierde el foco (la UI avisa con request_save/save_now)
#   3. Al cerrar el proceso (atexit), esperando como máximo
#      EXIT_SAVE_TIMEOUT_SECONDS a que termine el guardado en curso
#
# Un fallo de autoguardado NUNCA detiene la app: se registra y se reintenta
# en el próximo ciclo.
# ==============================================================================

import atexit
import threading
from datetime import datetime
from queue import Empty, Queue
from typing import Optional

from salon_ledger import config
from salon_ledger.exceptions import PersistenceError
from salon_ledger.repositories import IDocumentRepository

# Señal de parada para el thread
_STOP = object()


class AutosaveService:
    """
    Guardado periódico y al salir.

    Uso:
        autosave = AutosaveService(repo)
        autosave.start()            # thread + registro en atexit
        autosave.request_save('blur')
        autosave.shutdown()         # guardado final acotado
    """

    def __init__(
        self,
        repository: IDocumentRepository,
        interval: float = None,
        exit_timeout: float = None
    ):
        """
        Args:
            repository: Repositorio del documento
            interval: Segundos entre guardados automáticos
            exit_timeout: Espera máxima al cerrar
        """
        self.repository = repository
        self.interval = config.AUTOSAVE_INTERVAL_SECONDS if interval is None else float(interval)
        self.exit_timeout = config.EXIT_SAVE_TIMEOUT_SECONDS if exit_timeout is None else float(exit_timeout)

        self._queue: Queue = Queue()
        self._thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()
        self._atexit_registered = False

        self.save_count = 0
        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Inicia el thread de autoguardado (idempotente)."""
        if self.running:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._writer_loop, name='salon-autosave', daemon=True)
        self._thread.start()
        if not self._atexit_registered:
            atexit.register(self.shutdown)
            self._atexit_registered = True
        print(f"[AUTOSAVE] Activo cada {self.interval:g}s")

    def _writer_loop(self) -> None:
        """Espera pedidos de guardado; si no llega ninguno en `interval`, guarda igual."""
        while not self._stopped.is_set():
            try:
                reason = self._queue.get(timeout=self.interval)
            except Empty:
                reason = 'intervalo'
            if reason is _STOP:
                break
            self.save_now(reason)

    def save_now(self, reason: str = 'manual') -> bool:
        """
        Guarda el documento de forma síncrona.

        Returns:
            True si se guardó, False si falló (el error queda en last_error)
        """
        try:
            with self.repository.lock:
                self.repository.save()
        except PersistenceError as e:
            self.last_error = str(e)
            print(f"[AUTOSAVE ERROR] Guardado '{reason}' falló: {e}")
            return False
        self.save_count += 1
        self.last_saved_at = datetime.now()
        self.last_error = None
        return True

    def request_save(self, reason: str = 'blur') -> None:
        """
        Pide un guardado al thread (no bloquea). Si el thread no corre,
        guarda en el momento.
        """
        if self.running:
            self._queue.put(reason)
        else:
            self.save_now(reason)

    def shutdown(self, timeout: float = None) -> bool:
        """
        Detiene el thread y hace el guardado final.

        Espera al guardado en curso como máximo `timeout` segundos; nunca
        bloquea el cierre indefinidamente.

        Returns:
            True si el guardado final se completó
        """
        wait = self.exit_timeout if timeout is None else timeout
        if self.running:
            self._stopped.set()
            self._queue.put(_STOP)
            self._thread.join(timeout=wait)
            if self._thread.is_alive():
                print(f"[AUTOSAVE] El guardado en curso no terminó en {wait:g}s, se cierra igual")
                return False
        self._thread = None
        return self.save_now('salida')
