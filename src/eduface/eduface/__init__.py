"""EduFace school administration package.

Organized by feature modules (tenants, students, enrollment, attendance, fees, ...)
with a thin Flask controller layer over service/repository layers.
"""
