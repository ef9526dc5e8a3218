"""
CompanyIntel — Registry collectors.

Every collector returns a canonical record or None. No scoring logic here.

Sources:
    1. SEC EDGAR       (filings registry: search, profile, XBRL financials)
    2. CFPB            (consumer complaints)
    3. EPA ECHO        (environmental compliance)
    4. DOL / OSHA      (workplace safety inspections)
    5. USPTO           (patent assignments)
    6. FDIC BankFind   (banking health)
"""
