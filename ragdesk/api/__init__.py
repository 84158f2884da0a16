"""HTTP clients for the externally owned REST backends.

Endpoints:
    - dataset/*: Knowledge base listing, creation, deletion
    - document/*: Upload, parse, reparse, delete, download
    - download_report, download_template: Generated report files
    - fetch_compony_list, company_by_name: Company lookup
    - import_carbon_data: Carbon emissions intake submission
"""

from ragdesk.api.client import RagApiClient, close_api_client, get_api_client
from ragdesk.api.downloads import parse_content_disposition

__all__ = ["RagApiClient", "close_api_client", "get_api_client", "parse_content_disposition"]
