"""Discovery, static and custom namespace jobs, resource association and the scrape that runs them."""