from tripfare.providers.amadeus import AmadeusClient, amadeus_client
from tripfare.providers.duffel import DuffelClient, duffel_client


def get_duffel_client() -> DuffelClient:
    return duffel_client


def get_amadeus_client() -> AmadeusClient:
    return amadeus_client
