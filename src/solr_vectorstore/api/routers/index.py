from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from solr_vectorstore.indexing import IndexRequest, IndexService
from solr_vectorstore.vectorstore import VectorStoreError

from ..deps import get_index_service, to_http_error


router = APIRouter(prefix="/api/v1/index", tags=["index"])


class IndexDocumentRequest(BaseModel):
    id: Optional[str] = Field(
        None, description="Unique document identifier (auto-generated if not provided)."
    )
    content: str = Field(..., min_length=1, description="Text content to embed and index.")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Additional metadata fields."
    )


class BatchIndexRequest(BaseModel):
    documents: List[IndexDocumentRequest] = Field(
        ..., min_length=1, description="Documents to index."
    )


class DeleteRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="Ids of documents to delete.")


class IndexResponseModel(BaseModel):
    indexed: int = Field(..., description="Number of documents successfully indexed.")
    failed: int = Field(..., description="Number of documents that failed to index.")
    document_ids: List[str] = Field(
        default_factory=list, description="Ids of the indexed documents."
    )
    message: str = Field("", description="Status message.")


def _to_request(doc: IndexDocumentRequest) -> IndexRequest:
    return IndexRequest(content=doc.content, id=doc.id, metadata=dict(doc.metadata))


@router.post("/{collection}", summary="Index a single document", response_model=IndexResponseModel)
def index_document(
    collection: str,
    request: IndexDocumentRequest,
    service: IndexService = Depends(get_index_service),
) -> IndexResponseModel:
    resp = service.index_document(collection, _to_request(request))
    return IndexResponseModel(**vars(resp))


@router.post(
    "/{collection}/batch",
    summary="Index documents in batch",
    response_model=IndexResponseModel,
)
def index_documents(
    collection: str,
    request: BatchIndexRequest,
    service: IndexService = Depends(get_index_service),
) -> IndexResponseModel:
    resp = service.index_documents(collection, [_to_request(d) for d in request.documents])
    return IndexResponseModel(**vars(resp))


@router.delete("/{collection}", summary="Delete documents by id", status_code=204)
def delete_documents(
    collection: str,
    request: DeleteRequest,
    service: IndexService = Depends(get_index_service),
) -> None:
    try:
        service.delete_documents(collection, request.ids)
    except VectorStoreError as exc:
        raise to_http_error(exc) from exc
