"""Knowledge base handlers."""

from supportdesk.handlers.dependencies import get_knowledge_base
from supportdesk.handlers.responses import (
    handle_errors,
    int_path_param,
    json_response,
    parse_body,
    query_param,
)
from supportdesk.models.knowledge import KBArticleCreate
from supportdesk.utils.validators import parse_payload


@handle_errors("KB search")
def search_handler(event, context):
    """GET /kb/search?q="""
    return json_response(200, get_knowledge_base().search(query_param(event, "q", "")))


@handle_errors("KB list")
def list_handler(event, context):
    """GET /kb/articles"""
    return json_response(200, get_knowledge_base().list_articles())


@handle_errors("KB lookup")
def get_handler(event, context):
    """GET /kb/articles/{id}"""
    return json_response(200, get_knowledge_base().get_article(int_path_param(event, "id")))


@handle_errors("KB create")
def create_handler(event, context):
    """POST /kb/articles"""
    article = parse_payload(KBArticleCreate, parse_body(event))
    return json_response(201, get_knowledge_base().create_article(article))
