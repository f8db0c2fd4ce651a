"""Core services — asset store, project registry, comment store, coordinator."""

from pdfreview.services.annotation_service import AnnotationService  # noqa: F401
from pdfreview.services.asset_store import AssetStore, LocalAssetStore, create_asset_store  # noqa: F401
from pdfreview.services.comment_store import CommentStore, ThreadNode, build_reply_tree  # noqa: F401
from pdfreview.services.project_registry import ProjectRegistry  # noqa: F401
