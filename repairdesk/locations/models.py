from django.db import models


class Location(models.Model):
    """Branches (repair shops and collection points)"""
    LOCATION_TYPE_CHOICES = [
        ('branch', 'Branch'),
        ('warehouse', 'Warehouse'),
        ('head_office', 'Head Office'),
    ]

    name = models.CharField(max_length=200)
    location_code = models.CharField(max_length=50, unique=True)
    location_type = models.CharField(max_length=20, choices=LOCATION_TYPE_CHOICES, default='branch')
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'locations'
        ordering = ['name']
