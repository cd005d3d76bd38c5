"""CRUD operations for material chunks using FastCRUD."""

from fastcrud import FastCRUD

from .models import MaterialChunk

material_chunk_crud: FastCRUD = FastCRUD(MaterialChunk)
