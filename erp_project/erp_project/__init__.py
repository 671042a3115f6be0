# Celery instance is defined in erp_project/celery.py
# It points the worker at the Django settings of this project
from .celery import celery_app

# 'from erp_project import *', only exports celery_app
__all__ = ("celery_app",)

""" Run workers with "celery -A erp_project worker -l info"
    and the scheduler with "celery -A erp_project beat -l info". """
