from graphql import build_schema
from graphql_query_analyzer import (
    CACHE_CONTROL_DIRECTIVE_SDL,
    ComplexityConfig,
    ComplexityLimitExceededError,
    QueryAnalysisError,
    get_cache_control_header,
    get_cache_hints_from_schema,
    make_field_cost_table,
    validate_complexity,
)

schema = build_schema(CACHE_CONTROL_DIRECTIVE_SDL + '''
type Query {
    animals(limit: Int = 10): [Animal] @cacheControl(maxAge: 60)
}

type Animal {
    name: String
    friends: [Animal] @cacheControl(inheritMaxAge: true)
}
''')

# Listing animals costs one unit per requested animal.
field_costs = make_field_cost_table({
    'Query.animals': lambda arguments: arguments.get('limit', 10),
})
config = ComplexityConfig(max_depth=5, max_complexity=500, max_aliases=10)
cache_hints = get_cache_hints_from_schema(schema)

# Write GraphQL query.
graphql_query = '''
query Animals($limit: Int) {
    animals(limit: $limit) {
        name
        friends { name }
    }
}
'''
variables = {'limit': 100}

# Reject expensive queries before executing them, and compute the response's caching header.
try:
    cost = validate_complexity(graphql_query, schema, field_costs, config, variables=variables)
except ComplexityLimitExceededError as e:
    print('Rejected: {}'.format(e))
except QueryAnalysisError as e:
    print('Could not analyze the query, executing it anyway: {}'.format(e))
else:
    print('Query complexity: {}'.format(cost.complexity))
    print('Cache-Control: {}'.format(get_cache_control_header(graphql_query, schema, cache_hints)))
