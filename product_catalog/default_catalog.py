# product_catalog/default_catalog.py

"""
Catalog bundled with the storefront, shown until a server or cached copy
is available.
"""

DEFAULT_PRODUCTS = [
    {
        "id": "1",
        "name": "Silver Antique Set",
        "price": 2899,
        "offerPrice": 2299,
        "images": [
            "/assets/silver-antique-set1.jpg",
            "/assets/silver-antique-set2.jpg",
            "/assets/silver-antique-set3.jpg",
        ],
        "category": "necklaces",
        "description": "Exquisite silver eternity featuring brilliant-cut jewels",
        "stock": 5,
    },
    {
        "id": "2",
        "name": "Stone Necklace",
        "price": 799,
        "images": [
            "/assets/stone-neck-blue.jpg",
            "/assets/stone-neck-black.jpg",
            "/assets/stone-neck-blue.jpg",
        ],
        "category": "necklaces",
        "description": "Classic blue necklace with cute Stones",
        "stock": 15,
    },
    {
        "id": "3",
        "name": "Korean Stud",
        "price": 3299,
        "offerPrice": 2799,
        "images": [
            "/assets/korean-stud1.jpg",
            "/assets/korean-stud2.jpg",
            "/assets/korean-stud3.jpg",
        ],
        "category": "earrings",
        "description": "Art deco inspired ruby ring with diamond accents",
        "stock": 3,
    },
]
