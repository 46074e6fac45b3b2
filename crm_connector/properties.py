"""
Static HubSpot schema tables.

Each supported entity has a whitelist of canonical property names, a table of
common alternative spellings (CSV headers, OData field names, camelCase) and
the property used to look up an existing record during upsert.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

_ADDRESS_ALIASES = {
    "City": "city",
    "State": "state",
    "region": "state",
    "Region": "state",
    "Country": "country",
    "CountryCode": "country",
    "Zip": "zip",
    "postalCode": "zip",
    "PostalCode": "zip",
    "postal_code": "zip",
    "zipCode": "zip",
    "ZipCode": "zip",
    "Address": "address",
    "street": "address",
    "Street": "address",
    "streetAddress": "address",
    "StreetAddress": "address",
}

_PHONE_ALIASES = {
    "Phone": "phone",
    "telephone": "phone",
    "phoneNumber": "phone",
    "PhoneNumber": "phone",
    "phone_number": "phone",
}

_OWNER_ALIASES = {
    "owner_id": "hubspot_owner_id",
    "ownerId": "hubspot_owner_id",
    "OwnerId": "hubspot_owner_id",
}


@dataclass(frozen=True)
class EntityDescriptor:
    known_properties: FrozenSet[str] = frozenset()
    aliases: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    default_unique_property: str = ""

    @classmethod
    def build(
        cls,
        known: Iterable[str],
        aliases: Dict[str, str],
        unique: str,
    ) -> "EntityDescriptor":
        return cls(frozenset(known), MappingProxyType(dict(aliases)), unique)


EMPTY_DESCRIPTOR = EntityDescriptor()

COMPANIES = EntityDescriptor.build(
    [
        "name", "domain", "phone", "city", "state", "country", "zip",
        "address", "address2", "industry", "numberofemployees",
        "annualrevenue", "description", "website", "lifecyclestage", "type",
        "about_us", "founded_year", "linkedinhandle", "twitterhandle",
        "facebookpage", "timezone", "total_money_raised", "hs_lead_status",
        "hubspot_owner_id", "closedate", "revenue_range", "industry_group",
        "state_code", "country_code",
    ],
    {
        **_ADDRESS_ALIASES,
        **_PHONE_ALIASES,
        **_OWNER_ALIASES,
        "company_name": "name",
        "companyName": "name",
        "CompanyName": "name",
        "AccountName": "name",
        "account_name": "name",
        "Name": "name",
        "Domain": "domain",
        "website_domain": "domain",
        "companyDomain": "domain",
        "WebSite": "domain",
        "StateCode": "state",
        "street_address": "address",
        "Industry": "industry",
        "employees": "numberofemployees",
        "Employees": "numberofemployees",
        "employeeCount": "numberofemployees",
        "NumberOfEmployees": "numberofemployees",
        "number_of_employees": "numberofemployees",
        "revenue": "annualrevenue",
        "Revenue": "annualrevenue",
        "annual_revenue": "annualrevenue",
        "AnnualRevenue": "annualrevenue",
        "Description": "description",
        "Website": "website",
        "URL": "website",
        "url": "website",
        "homepage": "website",
        "lifecycle_stage": "lifecyclestage",
        "LifecycleStage": "lifecyclestage",
        "companyType": "type",
        "company_type": "type",
        "Type": "type",
    },
    "domain",
)

CONTACTS = EntityDescriptor.build(
    [
        "email", "firstname", "lastname", "phone", "mobilephone", "fax",
        "jobtitle", "company", "city", "state", "country", "zip", "address",
        "website", "industry", "annualrevenue", "lifecyclestage",
        "hs_lead_status", "hubspot_owner_id", "hs_email_domain", "salutation",
        "date_of_birth", "message", "numemployees", "hs_persona",
    ],
    {
        **_ADDRESS_ALIASES,
        **_PHONE_ALIASES,
        **_OWNER_ALIASES,
        "Email": "email",
        "emailAddress": "email",
        "EmailAddress": "email",
        "email_address": "email",
        "E_Mail": "email",
        "first_name": "firstname",
        "FirstName": "firstname",
        "firstName": "firstname",
        "givenName": "firstname",
        "GivenName": "firstname",
        "last_name": "lastname",
        "LastName": "lastname",
        "lastName": "lastname",
        "familyName": "lastname",
        "FamilyName": "lastname",
        "surname": "lastname",
        "Surname": "lastname",
        "mobile": "mobilephone",
        "Mobile": "mobilephone",
        "cellphone": "mobilephone",
        "CellPhone": "mobilephone",
        "cell_phone": "mobilephone",
        "MobilePhone": "mobilephone",
        "mobile_phone": "mobilephone",
        "Fax": "fax",
        "FaxNumber": "fax",
        "fax_number": "fax",
        "job_title": "jobtitle",
        "JobTitle": "jobtitle",
        "jobTitle": "jobtitle",
        "title": "jobtitle",
        "Title": "jobtitle",
        "position": "jobtitle",
        "Position": "jobtitle",
        "FunctionName": "jobtitle",
        "Company": "company",
        "companyName": "company",
        "CompanyName": "company",
        "company_name": "company",
        "AccountName": "company",
        "Website": "website",
        "URL": "website",
        "url": "website",
        "lifecycle_stage": "lifecyclestage",
        "LifecycleStage": "lifecyclestage",
        "Salutation": "salutation",
        "TitleOfCourtesy": "salutation",
    },
    "email",
)

DEALS = EntityDescriptor.build(
    [
        "dealname", "amount", "dealstage", "pipeline", "closedate",
        "dealtype", "description", "hubspot_owner_id", "hs_priority",
        "hs_forecast_amount", "hs_forecast_probability",
        "hs_deal_stage_probability", "hs_next_step",
    ],
    {
        **_OWNER_ALIASES,
        "deal_name": "dealname",
        "DealName": "dealname",
        "name": "dealname",
        "Name": "dealname",
        "subject": "dealname",
        "Subject": "dealname",
        "OpportunityName": "dealname",
        "Amount": "amount",
        "value": "amount",
        "Value": "amount",
        "dealAmount": "amount",
        "deal_amount": "amount",
        "ExpectedRevenueAmount": "amount",
        "deal_stage": "dealstage",
        "DealStage": "dealstage",
        "stage": "dealstage",
        "Stage": "dealstage",
        "SalesPhaseCode": "dealstage",
        "Pipeline": "pipeline",
        "close_date": "closedate",
        "CloseDate": "closedate",
        "closingDate": "closedate",
        "ClosingDate": "closedate",
        "ExpectedCloseDate": "closedate",
        "expected_close_date": "closedate",
        "deal_type": "dealtype",
        "DealType": "dealtype",
        "type": "dealtype",
        "Type": "dealtype",
        "Description": "description",
        "priority": "hs_priority",
        "Priority": "hs_priority",
    },
    "dealname",
)

TICKETS = EntityDescriptor.build(
    [
        "subject", "content", "hs_pipeline", "hs_pipeline_stage",
        "hs_ticket_priority", "hubspot_owner_id", "hs_ticket_category",
        "hs_resolution", "source_type",
    ],
    {
        **_OWNER_ALIASES,
        "Subject": "subject",
        "name": "subject",
        "Name": "subject",
        "title": "subject",
        "Title": "subject",
        "ticket_name": "subject",
        "Content": "content",
        "description": "content",
        "Description": "content",
        "body": "content",
        "Body": "content",
        "pipeline": "hs_pipeline",
        "Pipeline": "hs_pipeline",
        "stage": "hs_pipeline_stage",
        "Stage": "hs_pipeline_stage",
        "status": "hs_pipeline_stage",
        "Status": "hs_pipeline_stage",
        "pipeline_stage": "hs_pipeline_stage",
        "priority": "hs_ticket_priority",
        "Priority": "hs_ticket_priority",
        "ticket_priority": "hs_ticket_priority",
        "category": "hs_ticket_category",
        "Category": "hs_ticket_category",
    },
    "subject",
)

ENTITY_DESCRIPTORS: Mapping[str, EntityDescriptor] = MappingProxyType(
    {
        "companies": COMPANIES,
        "contacts": CONTACTS,
        "deals": DEALS,
        "tickets": TICKETS,
    }
)


class PropertyResolver:
    """Maps arbitrary input keys onto an entity's canonical property names."""

    def __init__(
        self, descriptors: Optional[Mapping[str, EntityDescriptor]] = None
    ):
        self.descriptors = (
            ENTITY_DESCRIPTORS if descriptors is None else descriptors
        )

    def descriptor(self, entity: str) -> EntityDescriptor:
        return self.descriptors.get(entity, EMPTY_DESCRIPTOR)

    def resolve(self, entity: str, key: str) -> str:
        desc = self.descriptor(entity)
        # exact known name wins over any alias entry for the same key
        if key in desc.known_properties:
            return key
        alias = desc.aliases.get(key)
        if alias:
            return alias
        # unknown keys pass through lower-cased as custom properties
        return key.lower()
