"""RFP intake wizard, document composition, and PDF rendering.

Key exports:
    WizardSession          — step index + answer record, all mutations
    can_advance()          — per-step completion predicate
    export_ready()         — contact fields filled, download allowed
    build_sections()       — answer record → ordered document sections
    compose_document()     — sections plus cover data for the renderer
    generate_rfp()         — compose and render an RFP PDF to disk
    generate_rfp_bytes()   — same, in memory, for the download route
"""
