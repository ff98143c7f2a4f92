# =============================================================================
# PRINTSHOP ANALYTICS - PYTEST CONFIGURATION
# =============================================================================
# Shared fixtures and configuration for all tests.
# =============================================================================

import pytest
import sys
import os
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def project_root():
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def now():
    """Reference instant: 2024-03-15 12:00 UTC."""
    return datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def materials():
    return [
        {"id": "m-black", "color": "Black", "color_hex": "#000000"},
        {"id": "m-white", "color": "White", "color_hex": "#ffffff"},
        {"id": "m-red", "color": "Red", "color_hex": "#D62828"},
        {"id": "m-gold", "color": "Gold", "color_hex": "gold"},
    ]


@pytest.fixture
def materials_by_id(materials):
    from analytics.queue import index_materials
    return index_materials(materials)


@pytest.fixture
def products():
    """Mixed-status product rows with joined models/materials."""
    return [
        {
            "id": "p1", "status": "in_coda", "quantity": 2, "queue_order": 2,
            "production_cost": "4", "production_extra_costs": [{"amount": "1", "note": "glue"}],
            "sale_price": "18", "material_id": "m-black",
            "models": {"name": "Vase", "photo_url": "https://cdn.example/vase.png"},
            "materials": {"id": "m-black", "color": "Black", "color_hex": "#000000"},
        },
        {
            "id": "p2", "status": "in_stampa", "quantity": 1, "queue_order": 1,
            "production_cost": 9, "sale_price": 35, "material_id": "m-black",
            "multimaterial_mapping": [
                {"color": 2, "material_id": "m-red"},
                {"color": 1, "material_id": "m-white"},
            ],
            "models": {"name": "Dragon", "photo_url": None},
            "materials": {"id": "m-black", "color": "Black", "color_hex": "#000000"},
        },
        {
            "id": "p3", "status": "disponibile", "quantity": 5,
            "production_cost": "1.10", "production_extra_costs": None,
            "sale_price": "6.50", "material_id": "m-white",
            "models": {"name": "Hook"},
        },
        {
            "id": "p4", "status": "venduto", "quantity": 3,
            "production_cost": "100", "sale_price": "100",
            "models": {"name": "Sold Out"},
        },
    ]


@pytest.fixture
def sales():
    """Sales ledger around the reference instant."""
    return [
        {"id": "s1", "sold_at": "2024-03-02T10:00:00+00:00", "quantity_sold": 1,
         "sales_channel": "Vinted", "revenue": "10", "total_costs": "3",
         "production_cost_base": "2", "profit": "6"},
        {"id": "s2", "sold_at": "2024-03-14T18:00:00Z", "quantity_sold": 2,
         "sales_channel": "eBay", "revenue": "40", "total_costs": "5",
         "production_cost_base": "4", "profit": "25"},
        {"id": "s3", "sold_at": "2024-03-14T20:30:00+00:00", "quantity_sold": None,
         "sales_channel": "", "revenue": 8, "total_costs": 2,
         "production_cost_base": 1, "profit": 5},
        {"id": "s4", "sold_at": "2024-02-20T09:00:00+00:00", "quantity_sold": 1,
         "sales_channel": "Shopify", "revenue": "20", "total_costs": "6",
         "production_cost_base": "3", "profit": "12"},
        {"id": "s5", "sold_at": None, "quantity_sold": 4,
         "sales_channel": "Vinted", "revenue": "999", "total_costs": "1",
         "production_cost_base": "1", "profit": "900"},
    ]


@pytest.fixture
def base_config():
    from analytics.config import load_config
    return load_config(Path(__file__).parent.parent / "settings" / "base.yaml")
