"""GitHub REST API transport and pull request client."""