"""
Management command to insert a starter pharmacy catalog.

Nothing is written when the catalog already holds drugs, so the command
is safe to run on every deploy.
"""
from datetime import date
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import Drug

STARTER_CATALOG = [
    {
        'name': 'Panadol', 'generic_name': 'Paracetamol', 'category': 'Pain Relief',
        'manufacturer': 'GSK', 'price': Decimal('4.99'), 'dosage': '1-2 tablets every 4-6 hours',
        'form': 'tablet', 'strength': '500mg', 'stock_quantity': 250, 'rating': 4.7,
        'review_count': 1280, 'is_popular': True,
        'side_effects': ['Nausea', 'Rash'], 'contraindications': ['Severe liver disease'],
        'instructions': 'Do not exceed 8 tablets in 24 hours.',
    },
    {
        'name': 'Brufen', 'generic_name': 'Ibuprofen', 'category': 'Pain Relief',
        'manufacturer': 'Abbott', 'price': Decimal('6.49'), 'dosage': '1 tablet every 8 hours',
        'form': 'tablet', 'strength': '400mg', 'stock_quantity': 180, 'rating': 4.5,
        'review_count': 860, 'is_popular': True, 'discount': Decimal('10'),
        'side_effects': ['Heartburn', 'Dizziness'], 'contraindications': ['Peptic ulcer'],
        'instructions': 'Take with food.',
    },
    {
        'name': 'Amoxil', 'generic_name': 'Amoxicillin', 'category': 'Antibiotics',
        'manufacturer': 'GSK', 'price': Decimal('12.99'), 'dosage': '1 capsule every 8 hours',
        'form': 'capsule', 'strength': '500mg', 'requires_prescription': True,
        'stock_quantity': 90, 'rating': 4.4, 'review_count': 410,
        'side_effects': ['Diarrhoea', 'Rash'], 'contraindications': ['Penicillin allergy'],
        'instructions': 'Complete the full course.',
    },
    {
        'name': 'Glucophage', 'generic_name': 'Metformin', 'category': 'Diabetes',
        'manufacturer': 'Merck', 'price': Decimal('9.75'), 'dosage': '1 tablet twice daily',
        'form': 'tablet', 'strength': '850mg', 'requires_prescription': True,
        'stock_quantity': 120, 'rating': 4.3, 'review_count': 295,
        'side_effects': ['Stomach upset'], 'contraindications': ['Kidney failure'],
        'instructions': 'Take with meals.',
    },
    {
        'name': 'Zyrtec', 'generic_name': 'Cetirizine', 'category': 'Allergy',
        'manufacturer': 'UCB', 'price': Decimal('7.25'), 'dosage': '1 tablet daily',
        'form': 'tablet', 'strength': '10mg', 'stock_quantity': 200, 'rating': 4.6,
        'review_count': 640, 'is_popular': True, 'discount': Decimal('15'),
        'side_effects': ['Drowsiness'], 'contraindications': [],
        'instructions': 'May cause drowsiness; avoid driving.',
    },
    {
        'name': 'Benylin', 'generic_name': 'Dextromethorphan', 'category': 'Cough & Cold',
        'manufacturer': 'Johnson & Johnson', 'price': Decimal('8.50'), 'dosage': '10ml every 6 hours',
        'form': 'syrup', 'strength': '15mg/5ml', 'stock_quantity': 75, 'rating': 4.1,
        'review_count': 190,
        'side_effects': ['Drowsiness'], 'contraindications': ['MAOI use'],
        'instructions': 'Shake well before use.',
    },
    {
        'name': 'Vitamin C', 'generic_name': 'Ascorbic Acid', 'category': 'Vitamins',
        'manufacturer': 'Nature Made', 'price': Decimal('5.99'), 'dosage': '1 tablet daily',
        'form': 'tablet', 'strength': '1000mg', 'stock_quantity': 300, 'rating': 4.8,
        'review_count': 1500, 'is_popular': True,
        'side_effects': [], 'contraindications': [],
        'instructions': 'Take after a meal.',
    },
    {
        'name': 'Norvasc', 'generic_name': 'Amlodipine', 'category': 'Cardiovascular',
        'manufacturer': 'Pfizer', 'price': Decimal('14.20'), 'dosage': '1 tablet daily',
        'form': 'tablet', 'strength': '5mg', 'requires_prescription': True,
        'stock_quantity': 0, 'is_available': False, 'rating': 4.2, 'review_count': 150,
        'side_effects': ['Ankle swelling'], 'contraindications': ['Severe hypotension'],
        'instructions': 'Take at the same time each day.',
    },
]


class Command(BaseCommand):
    help = 'Insert a starter pharmacy catalog when the catalog is empty.'

    @transaction.atomic
    def handle(self, *args, **options):
        if Drug.objects.exists():
            self.stdout.write('Pharmacy catalog already populated, nothing to do.')
            return
        expiry = date(date.today().year + 2, 12, 31)
        for entry in STARTER_CATALOG:
            Drug.objects.create(
                description=f"{entry['generic_name']} {entry['strength']} {entry['form']}",
                expiry_date=expiry,
                **entry,
            )
        self.stdout.write(self.style.SUCCESS(f'Seeded {len(STARTER_CATALOG)} drugs.'))
