# ==============================================================================
# SERVICIO DE USUARIOS
# ==============================================================================
# Autenticación y alta de usuarios del sistema.
#
# Las contraseñas se guardan hasheadas con werkzeug. Los documentos legacy
# (aplicación de escritorio) traen la contraseña en texto plano: se aceptan
# y se re-hashean en el primer login correcto.
# ==============================================================================

from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from salon_ledger.exceptions import PersistenceError, ValidationError
from salon_ledger.models import User, UserRole
from salon_ledger.repositories import IDocumentRepository

# Prefijos de los métodos de hash de werkzeug
HASH_PREFIXES = ('pbkdf2:', 'scrypt:')


def is_hashed(password: str) -> bool:
    return str(password or '').startswith(HASH_PREFIXES)


class UserService:
    """
    Servicio para gestión de usuarios.

    Responsabilidades:
    - Autenticación (usuario sensible a mayúsculas)
    - Alta / cambio de contraseña
    - Listado sin exponer contraseñas
    """

    def __init__(self, document_repo: IDocumentRepository):
        self.document_repo = document_repo

    @staticmethod
    def _public(user: User) -> Dict[str, Any]:
        return {'username': user.username, 'role': user.role.value}

    def authenticate(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Autentica un usuario.

        Returns:
            Dict {username, role} si es válido, None si no
        """
        if not username or password is None:
            return None

        with self.document_repo.lock:
            user = self.document_repo.load().find_user(username)
            if user is None:
                return None

            if is_hashed(user.password):
                if not check_password_hash(user.password, password):
                    return None
            else:
                # Texto plano (legacy)
                if user.password != password:
                    return None
                user.password = generate_password_hash(password)
                try:
                    self.document_repo.save()
                except PersistenceError as e:
                    print(f"[ADVERTENCIA] No se pudo guardar el hash de '{username}': {e}")

        print(f"[LOGIN] {username}")
        return self._public(user)

    def add_or_update_user(self, username: str, password: str, role: Any = UserRole.ADMIN) -> Dict[str, Any]:
        """
        Crea un usuario o cambia la contraseña/rol de uno existente.

        Raises:
            ValidationError: usuario o contraseña vacíos, rol inválido
        """
        username = str(username or '').strip()
        if not username:
            raise ValidationError("Usuario requerido")
        if not password:
            raise ValidationError("Contraseña requerida")
        try:
            user_role = UserRole(role.value if isinstance(role, UserRole) else str(role or 'admin'))
        except ValueError:
            valid = ', '.join(r.value for r in UserRole)
            raise ValidationError(f"Rol inválido: {role!r} (válidos: {valid})")

        with self.document_repo.lock:
            document = self.document_repo.load()
            user = document.find_user(username)
            if user is None:
                user = User(username=username, password='', role=user_role)
                document.users.append(user)
                print(f"[USUARIOS] Usuario creado: {username}")
            else:
                print(f"[USUARIOS] Usuario actualizado: {username}")
            user.password = generate_password_hash(password)
            user.role = user_role

            result = self._public(user)
            try:
                self.document_repo.save()
            except PersistenceError as e:
                raise PersistenceError(str(e), result=result) from e
            return result

    def list_users(self) -> List[Dict[str, Any]]:
        return [self._public(u) for u in self.document_repo.load().users]
