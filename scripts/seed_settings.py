"""
Seed default cooperative settings read by the payroll engine.
"""
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from koperasi.db.base import SessionLocal
from koperasi.models.system import CooperativeSetting
from koperasi.services.settings import DEFAULT_VALUES, PayrollSettingKeys


SETTINGS = [
    {
        "key": PayrollSettingKeys.INITIAL_MEMBERSHIP_FEE,
        "category": "membership",
        "description": "Biaya pendaftaran anggota baru koperasi (Rupiah)",
    },
    {
        "key": PayrollSettingKeys.MONTHLY_MEMBERSHIP_FEE,
        "category": "membership",
        "description": "Iuran wajib bulanan untuk anggota (Rupiah)",
    },
    {
        "key": PayrollSettingKeys.DEPOSIT_INTEREST_RATE,
        "category": "savings",
        "description": "Persentase bunga deposito per tahun",
    },
    {
        "key": PayrollSettingKeys.LOAN_INTEREST_RATE,
        "category": "interest",
        "description": "Persentase bunga pinjaman per tahun",
    },
    {
        "key": PayrollSettingKeys.CUTOFF_DATE,
        "category": "general",
        "description": "Tanggal cutoff untuk perhitungan simpanan dan pinjaman",
    },
    {
        "key": PayrollSettingKeys.PAYROLL_DATE,
        "category": "general",
        "description": "Tanggal gajian untuk potongan koperasi",
    },
]


def seed_settings(db):
    """Insert missing payroll settings with their default values."""
    print("Seeding cooperative settings...")

    created = 0
    for setting_data in SETTINGS:
        existing = db.query(CooperativeSetting).filter(CooperativeSetting.key == setting_data["key"]).first()
        if not existing:
            db.add(CooperativeSetting(value=str(DEFAULT_VALUES[setting_data["key"]]), **setting_data))
            created += 1

    db.commit()
    print(f"Cooperative settings seeded ({created} new)")


if __name__ == "__main__":
    db = SessionLocal()
    try:
        seed_settings(db)
        print("\nSeed data complete!")
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
        raise
    finally:
        db.close()
