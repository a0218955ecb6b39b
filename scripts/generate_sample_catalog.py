#!/usr/bin/env python3
"""
Generate a sample catalog for manual search testing.

Scenario: a small district marketplace with grocery shops, a restaurant,
a salon and a few public offices. Names mix English and Hindi so that
localized matching and typo handling can be tried from the CLI.
"""

import json
import os
import random
from collections import Counter

from catalog_search.search.reference import generate_reference_id

OUTPUT_DIR = "data/sample_catalog"
OUTPUT_FILE = "catalog.json"

DISTRICTS = {
    "Mandsaur": (24.0734, 75.0679),
    "Neemuch": (24.4764, 74.8624),
}

SHOPS = [
    {"name": "Rice Palace", "category": "Grocery", "tags": ["grains", "wholesale"]},
    {"name": "Sharma General Store", "category": "Grocery", "tags": ["daily needs"]},
    {"name": "Annapurna Bhojnalaya", "category": "Restaurant", "tags": ["thali", "veg"]},
    {"name": "Style Studio", "category": "Salon", "tags": ["unisex"]},
]

PRODUCTS = [
    ("Basmati Rice Premium", "बासमती चावल", "Grains", "India Gate", 120),
    ("Sona Masoori Rice", "सोना मसूरी चावल", "Grains", "Daawat", 85),
    ("Toor Dal", "तूर दाल", "Pulses", "Tata Sampann", 150),
    ("Moong Dal", "मूंग दाल", "Pulses", "Tata Sampann", 140),
    ("Whole Wheat Atta", "गेहूं आटा", "Flour", "Aashirvaad", 310),
    ("Mustard Oil", "सरसों तेल", "Oil", "Fortune", 180),
    ("Full Cream Milk", "दूध", "Dairy", "Amul", 66),
    ("Jaggery", "गुड़", "Sweeteners", None, 60),
]

MENU_ITEMS = [
    ("Veg Biryani", "वेज बिरयानी", "Main Course", "Fragrant basmati rice with vegetables", 180),
    ("Dal Tadka", "दाल तड़का", "Main Course", "Yellow lentils tempered with ghee", 140),
    ("Masala Dosa", "मसाला डोसा", "South Indian", "Crisp dosa with potato filling", 90),
    ("Gulab Jamun", "गुलाब जामुन", "Desserts", "Two pieces in sugar syrup", 60),
]

SERVICES = [
    ("Haircut", "Salon", ["home visit"], (100, 300)),
    ("Facial", "Salon", ["herbal"], (400, 900)),
    ("AC Repair", "Repair", ["same day"], (350, 1200)),
]

OFFICES = [
    ("Municipal Office", "Government", ["birth certificate", "water connection"]),
    ("Post Office", "Government", ["speed post", "savings account"]),
]


def _jitter(rng, origin):
    lat, lng = origin
    return {"lat": round(lat + rng.uniform(-0.03, 0.03), 5), "lng": round(lng + rng.uniform(-0.03, 0.03), 5)}


class ReferenceCounter:
    def __init__(self):
        self.counts = Counter()

    def next(self, kind, district):
        reference_id = generate_reference_id(kind, district, self.counts[(kind, district)])
        self.counts[(kind, district)] += 1
        return reference_id


def build_catalog(seed=42):
    rng = random.Random(seed)
    refs = ReferenceCounter()
    entities = []

    for district, origin in DISTRICTS.items():
        slug = district.lower()
        shop_ids = []
        for index, shop in enumerate(SHOPS, start=1):
            shop_id = f"{slug}-shop-{index}"
            shop_ids.append(shop_id)
            entities.append(
                {
                    "kind": "shop",
                    "id": shop_id,
                    "reference_id": refs.next("shop", district),
                    "district": district,
                    "address": f"Station Road, {district}",
                    "location": _jitter(rng, origin),
                    "opening_time": "09:00",
                    "closing_time": "21:00",
                    "rating": round(rng.uniform(3.5, 5.0), 1),
                    **shop,
                }
            )

        for index, (name, localized, category, brand, price) in enumerate(PRODUCTS, start=1):
            stock = rng.choice([0, 3, 12, 40])
            entities.append(
                {
                    "kind": "product",
                    "id": f"{slug}-product-{index}",
                    "reference_id": refs.next("product", district),
                    "name": name,
                    "localized_name": localized,
                    "category": category,
                    "brand": brand,
                    "district": district,
                    "shop_id": shop_ids[index % 2],
                    "price": price,
                    "stock": stock,
                    "rating": round(rng.uniform(3.0, 5.0), 1),
                }
            )

        for index, (name, localized, category, description, price) in enumerate(
            MENU_ITEMS, start=1
        ):
            entities.append(
                {
                    "kind": "menu_item",
                    "id": f"{slug}-menu-{index}",
                    "reference_id": refs.next("menu_item", district),
                    "name": name,
                    "localized_name": localized,
                    "category": category,
                    "description": description,
                    "district": district,
                    "shop_id": shop_ids[2],
                    "price": price,
                    "is_veg": True,
                }
            )

        for index, (name, category, highlights, (low, high)) in enumerate(SERVICES, start=1):
            entities.append(
                {
                    "kind": "service",
                    "id": f"{slug}-service-{index}",
                    "reference_id": refs.next("service", district),
                    "name": name,
                    "category": category,
                    "highlights": highlights,
                    "district": district,
                    "shop_id": shop_ids[3],
                    "price_range": {"min": low, "max": high},
                }
            )

        for index, (name, category, services) in enumerate(OFFICES, start=1):
            entities.append(
                {
                    "kind": "office",
                    "id": f"{slug}-office-{index}",
                    "reference_id": refs.next("office", district),
                    "name": f"{district} {name}",
                    "category": category,
                    "services": services,
                    "district": district,
                    "address": f"Collectorate Road, {district}",
                    "location": _jitter(rng, origin),
                }
            )

    return entities


def main():
    os.makedirs(OUTPUT_DIR, exist_ok=True)
    entities = build_catalog()
    path = os.path.join(OUTPUT_DIR, OUTPUT_FILE)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"entities": entities}, f, ensure_ascii=False, indent=2)

    counts = Counter(entity["kind"] for entity in entities)
    print(f"\n{'='*60}")
    print("SUMMARY")
    print(f"{'='*60}")
    for kind, count in sorted(counts.items()):
        print(f"  {kind}: {count}")
    print(f"  Output file: {path}")
    print(f"\nTry:\n  catalog-search load {path}\n  catalog-search search bastmati")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    main()
