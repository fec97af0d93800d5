"""
Scripts Module

Management utilities and CLI tools for system administration tasks including:
- Seeding default role templates
- Bootstrapping the ADMIN principal
"""
