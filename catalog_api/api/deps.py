from catalog_api.services.catalog_service import CatalogAggregator, catalog_aggregator


def get_catalog_aggregator() -> CatalogAggregator:
    return catalog_aggregator
