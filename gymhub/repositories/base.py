from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy.orm import Session

from gymhub.core.exceptions import NotFoundError
from gymhub.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        """
        Repository con operaciones CRUD por defecto y soporte para multi-tenant.
        """
        self.model = model

    def get(self, db: Session, id: Any, gym_id: Optional[int] = None) -> Optional[ModelType]:
        """
        Obtener un objeto por su ID con filtro opcional de tenant.

        Args:
            db: Sesión de base de datos
            id: ID del objeto a obtener
            gym_id: ID opcional del gimnasio (tenant) para filtrar

        Returns:
            El objeto solicitado o None si no existe
        """
        query = db.query(self.model).filter(self.model.id == id)

        # Filtrar por gimnasio si el modelo tiene el atributo gym_id y se proporciona un gym_id
        if gym_id is not None and hasattr(self.model, "gym_id"):
            query = query.filter(self.model.gym_id == gym_id)

        return query.first()

    def create(
        self, db: Session, *, obj_in: Union[CreateSchemaType, Dict[str, Any]], gym_id: Optional[int] = None,
        **extra: Any
    ) -> ModelType:
        """
        Crear un nuevo registro con soporte para tenant.

        Los argumentos extra (p.ej. ``author_id``) se añaden tal cual al modelo.
        """
        # model_dump() preserva date/time nativos, jsonable_encoder los convertiría a str
        obj_in_data = dict(obj_in) if isinstance(obj_in, dict) else obj_in.model_dump()
        obj_in_data.update(extra)

        if gym_id is not None and hasattr(self.model, "gym_id"):
            obj_in_data["gym_id"] = gym_id

        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
    ) -> ModelType:
        """
        Actualizar un registro con los campos enviados (exclude_unset).
        """
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, id: int, gym_id: Optional[int] = None) -> ModelType:
        """
        Eliminar un registro con verificación opcional de tenant.

        Raises:
            NotFoundError: Si el objeto no existe o no pertenece al gimnasio especificado
        """
        obj = self.get(db, id=id, gym_id=gym_id)
        if not obj:
            raise NotFoundError(f"{self.model.__name__} {id} no encontrado")

        db.delete(obj)
        db.commit()
        return obj

    def exists(self, db: Session, id: int, gym_id: Optional[int] = None) -> bool:
        query = db.query(self.model.id).filter(self.model.id == id)

        if gym_id is not None and hasattr(self.model, "gym_id"):
            query = query.filter(self.model.gym_id == gym_id)

        return db.query(query.exists()).scalar()
