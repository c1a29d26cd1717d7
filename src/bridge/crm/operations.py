"""GraphQL documents sent to the Twenty API.

Each find query is capped to one result; the first match wins.
"""

FIND_COMPANY_QUERY = """
query FindCompany($filter: CompanyFilterInput!) {
  companies(filter: $filter, first: 1) {
    edges {
      node { id name }
    }
  }
}
"""

CREATE_COMPANY_MUTATION = """
mutation CreateCompany($input: CompanyCreateInput!) {
  createCompanies(data: [$input]) {
    id
    name
  }
}
"""

FIND_PERSON_QUERY = """
query FindPersonByEmail($email: String!) {
  people(filter: { emails: { primaryEmail: { eq: $email } } }, first: 1) {
    edges {
      node { id }
    }
  }
}
"""

CREATE_PERSON_MUTATION = """
mutation CreatePerson($input: PersonCreateInput!) {
  createPerson(data: $input) {
    id
  }
}
"""

CREATE_OPPORTUNITY_MUTATION = """
mutation CreateOpportunity($input: OpportunityCreateInput!) {
  createOpportunity(data: $input) {
    id
    stage
  }
}
"""

CREATE_TASK_MUTATION = """
mutation CreateTask($input: TaskCreateInput!) {
  createTask(data: $input) {
    id
  }
}
"""

CREATE_TASK_TARGET_MUTATION = """
mutation CreateTaskTarget($input: TaskTargetCreateInput!) {
  createTaskTarget(data: $input) {
    id
  }
}
"""

CREATE_NOTE_MUTATION = """
mutation CreateNote($input: NoteCreateInput!) {
  createNote(data: $input) {
    id
  }
}
"""

CREATE_NOTE_TARGET_MUTATION = """
mutation CreateNoteTarget($input: NoteTargetCreateInput!) {
  createNoteTarget(data: $input) {
    id
  }
}
"""
