"""Authority Registry — person authority records for a digital repository.

Associates people with their keys in external identity-authority systems
(ORCID, Scopus, national authority files, ...) and serves them over a REST
API. Administrators curate; everyone else reads an anonymized view.
"""

__version__ = "0.1.0"
