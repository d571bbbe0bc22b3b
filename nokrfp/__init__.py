"""
Nok Recommerce — Reverse Logistics RFP Builder

Packages:
    api/        Wizard routes and HTML templates
    forms/      Form engine, document composer, and RFP PDF generation
    core/       Shared configuration, branding, paths, and startup checks
"""
