#!/usr/bin/env python3
"""
Database Seeding Script - Shiv Furnitures
Seeds demo master data (contacts, products, GST taxes, opening stock) for testing and UAT.
"""

from datetime import date
from decimal import Decimal

CONTACTS = [
    # name, type, email, mobile, gst_no
    ("Nimesh Pathak", "Customer", "nimesh@example.in", "9876500001", "24ABCDE1234F1Z5"),
    ("Urban Living Interiors", "Customer", "orders@urbanliving.in", "9876500002", "27AAACU1234K1Z2"),
    ("Azure Furniture Mart", "Both", "buy@azuremart.in", "9876500003", "24AAACA5678L1Z9"),
    ("Gujarat Timber Traders", "Vendor", "sales@gujtimber.in", "9876500004", "24AAACG4321M1Z1"),
    ("Rajkot Hardware Supply", "Vendor", "info@rkhardware.in", "9876500005", "24AAACR8765N1Z3"),
]

PRODUCTS = [
    # name, sales price, purchase price, HSN, category
    ("Office Chair", "4500.00", "3000.00", "940130", "Furniture"),
    ("Teak Dining Table", "32000.00", "24000.00", "940360", "Furniture"),
    ("Study Desk", "8500.00", "6200.00", "940330", "Furniture"),
    ("Wardrobe 3-Door", "27500.00", "19800.00", "940350", "Furniture"),
    ("Sofa Cushion Fabric (m)", "650.00", "420.00", "540752", "Textile"),
]

TAXES = [
    # name, method, value, applicable on
    ("CGST 9%", "Percentage", "9", "Sales"),
    ("SGST 9%", "Percentage", "9", "Sales"),
    ("IGST 18%", "Percentage", "18", "Sales"),
    ("CGST 9% (Input)", "Percentage", "9", "Purchase"),
    ("SGST 9% (Input)", "Percentage", "9", "Purchase"),
    ("IGST 18% (Input)", "Percentage", "18", "Purchase"),
    ("Packing Charge", "Fixed", "150", "Sales"),
]

OPENING_STOCK = {
    "Office Chair": "40",
    "Teak Dining Table": "6",
    "Study Desk": "15",
    "Wardrobe 3-Door": "8",
    "Sofa Cushion Fabric (m)": "120",
}


def main():
    """Main function."""
    print("=" * 60)
    print("Database Seeding - Shiv Furnitures ERP")
    print("=" * 60)

    # Initialize database first
    from shiv_erp.infrastructure.database import SessionLocal, init_db, seed_default_accounts
    from shiv_erp.infrastructure.database.models import Contact, Product, StockLedger, Tax

    init_db()
    created = seed_default_accounts()
    print(f"✓ Seeded {created} default accounts")

    db = SessionLocal()

    try:
        # Seed contacts
        print(f"\n📦 Seeding {len(CONTACTS)} contacts...")
        for name, contact_type, email, mobile, gst_no in CONTACTS:
            exists = db.query(Contact).filter(Contact.name == name).first()
            if not exists:
                db.add(
                    Contact(
                        name=name,
                        type=contact_type,
                        email=email,
                        mobile=mobile,
                        gst_no=gst_no,
                        is_active=True,
                    )
                )
        db.commit()
        print(f"✓ Seeded {len(CONTACTS)} contacts")

        # Seed products
        print(f"\n📦 Seeding {len(PRODUCTS)} products...")
        for name, sales_price, purchase_price, hsn_code, category in PRODUCTS:
            exists = db.query(Product).filter(Product.name == name).first()
            if not exists:
                db.add(
                    Product(
                        name=name,
                        sales_price=Decimal(sales_price),
                        purchase_price=Decimal(purchase_price),
                        hsn_code=hsn_code,
                        category=category,
                        is_active=True,
                    )
                )
        db.commit()
        print(f"✓ Seeded {len(PRODUCTS)} products")

        # Seed taxes
        print(f"\n📦 Seeding {len(TAXES)} taxes...")
        for name, method, value, applicable_on in TAXES:
            exists = db.query(Tax).filter(Tax.name == name).first()
            if not exists:
                db.add(
                    Tax(
                        name=name,
                        method=method,
                        value=Decimal(value),
                        applicable_on=applicable_on,
                        is_active=True,
                    )
                )
        db.commit()
        print(f"✓ Seeded {len(TAXES)} taxes")

        # Seed opening stock
        print(f"\n📦 Seeding opening stock for {len(OPENING_STOCK)} products...")
        for name, quantity in OPENING_STOCK.items():
            product = db.query(Product).filter(Product.name == name).first()
            exists = (
                db.query(StockLedger)
                .filter(StockLedger.product_id == product.id, StockLedger.reference == "OPENING")
                .first()
            )
            if not exists:
                db.add(
                    StockLedger(
                        product_id=product.id,
                        type="In",
                        quantity=Decimal(quantity),
                        entry_date=date.today(),
                        reference="OPENING",
                    )
                )
        db.commit()
        print(f"✓ Seeded opening stock")

        print("\n" + "=" * 60)
        print("Seeding completed successfully!")
        print("=" * 60)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
