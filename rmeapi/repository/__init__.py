"""MongoDB repositories, one for each collection of the medical record API."""