"""Provider backed by the local git repository."""