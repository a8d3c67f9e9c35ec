"""ONIX code lists shared by the 2.1 and 3.0 encoders."""

from ..schemas.work import (
    ContributionType,
    LanguageRelation,
    LicenseKind,
    PublicationType,
    SubjectType,
    WorkStatus,
)
from .vocabulary import VocabularyTable

# List 64
PUBLISHING_STATUS = VocabularyTable(
    "onix.publishing_status",
    WorkStatus,
    {
        WorkStatus.UNSPECIFIED: "00",
        WorkStatus.CANCELLED: "01",
        WorkStatus.FORTHCOMING: "02",
        WorkStatus.POSTPONED_INDEFINITELY: "03",
        WorkStatus.ACTIVE: "04",
        WorkStatus.NO_LONGER_OUR_PRODUCT: "05",
        WorkStatus.OUT_OF_STOCK_INDEFINITELY: "06",
        WorkStatus.OUT_OF_PRINT: "07",
        WorkStatus.INACTIVE: "08",
        WorkStatus.UNKNOWN: "09",
        WorkStatus.REMAINDERED: "10",
        WorkStatus.WITHDRAWN_FROM_SALE: "11",
        WorkStatus.RECALLED: "12",
    },
)

# List 65; statuses without a supply equivalent fall back to "uncertain"
PRODUCT_AVAILABILITY = VocabularyTable(
    "onix.product_availability",
    WorkStatus,
    {
        WorkStatus.CANCELLED: "01",
        WorkStatus.POSTPONED_INDEFINITELY: "09",
        WorkStatus.FORTHCOMING: "10",
        WorkStatus.ACTIVE: "20",
        WorkStatus.REMAINDERED: "20",
        WorkStatus.OUT_OF_STOCK_INDEFINITELY: "40",
        WorkStatus.INACTIVE: "40",
        WorkStatus.NO_LONGER_OUR_PRODUCT: "43",
        WorkStatus.WITHDRAWN_FROM_SALE: "46",
        WorkStatus.RECALLED: "46",
        WorkStatus.OUT_OF_PRINT: "51",
    },
    fallback="99",
)

# List 17
CONTRIBUTOR_ROLE = VocabularyTable(
    "onix.contributor_role",
    ContributionType,
    {
        ContributionType.AUTHOR: "A01",
        ContributionType.EDITOR: "B01",
        ContributionType.TRANSLATOR: "B06",
        ContributionType.PHOTOGRAPHER: "A13",
        ContributionType.ILLUSTRATOR: "A12",
        ContributionType.MUSIC_EDITOR: "B25",
        ContributionType.FOREWORD_BY: "A16",
        ContributionType.INTRODUCTION_BY: "A24",
        ContributionType.AFTERWORD_BY: "A19",
        ContributionType.PREFACE_BY: "A15",
    },
)

# List 22
LANGUAGE_ROLE = VocabularyTable(
    "onix.language_role",
    LanguageRelation,
    {
        LanguageRelation.ORIGINAL: "01",
        LanguageRelation.TRANSLATED_INTO: "01",
        LanguageRelation.TRANSLATED_FROM: "02",
    },
)

# List 26 (3.0) / List 27 (2.1)
SUBJECT_SCHEME = VocabularyTable(
    "onix.subject_scheme",
    SubjectType,
    {
        SubjectType.BIC: "12",
        SubjectType.BISAC: "10",
        SubjectType.THEMA: "93",
        SubjectType.LCC: "04",
        SubjectType.KEYWORD: "20",
        SubjectType.CUSTOM: "24",
    },
)

# Subject schemes carried as free text rather than codes
TEXT_SUBJECTS = frozenset({SubjectType.KEYWORD, SubjectType.CUSTOM})

LICENSE_NAME = VocabularyTable(
    "onix.license_name",
    LicenseKind,
    {
        LicenseKind.BY: "Creative Commons Attribution",
        LicenseKind.BY_SA: "Creative Commons Attribution-ShareAlike",
        LicenseKind.BY_ND: "Creative Commons Attribution-NoDerivatives",
        LicenseKind.BY_NC: "Creative Commons Attribution-NonCommercial",
        LicenseKind.BY_NC_SA: "Creative Commons Attribution-NonCommercial-ShareAlike",
        LicenseKind.BY_NC_ND: "Creative Commons Attribution-NonCommercial-NoDerivatives",
        LicenseKind.ZERO: "Creative Commons Zero (Public Domain Dedication)",
        LicenseKind.UNDEFINED: None,
    },
)

# List 150 / List 175 for 3.0; print formats carry no form detail
PRODUCT_FORM = VocabularyTable(
    "onix3.product_form",
    PublicationType,
    {
        PublicationType.PAPERBACK: "BC",
        PublicationType.HARDBACK: "BB",
    },
    fallback="EB",
)

PRODUCT_FORM_DETAIL = VocabularyTable(
    "onix3.product_form_detail",
    PublicationType,
    {
        PublicationType.PAPERBACK: None,
        PublicationType.HARDBACK: None,
        PublicationType.PDF: "E107",
        PublicationType.HTML: "E105",
        PublicationType.XML: "E113",
        PublicationType.EPUB: "E101",
        PublicationType.MOBI: "E127",
        PublicationType.AZW3: "E116",
        PublicationType.DOCX: "E104",
        PublicationType.FICTION_BOOK: "E100",
    },
)

# List 10 (2.1 only); print formats cannot be sent as e-book products
EPUB_TYPE = VocabularyTable(
    "onix21.epub_type",
    PublicationType,
    {
        PublicationType.PDF: "002",
        PublicationType.HTML: "005",
        PublicationType.EPUB: "029",
    },
    fallback="000",
    rejected=(PublicationType.PAPERBACK, PublicationType.HARDBACK),
)
