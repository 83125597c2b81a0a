# Request dependencies: API-key guard and the platform repository.
